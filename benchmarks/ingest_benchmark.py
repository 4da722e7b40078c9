import csv
import sys
import tempfile
import time
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

from termdash.services import Aggregator, FileCatalog

HEADER = "交易时间,交易分类,交易对方,对方账号,商品说明,收/支,金额,收/付款方式,交易状态"


def build_bills(directory: Path, n_files: int, rows_per_file: int) -> None:
    for i in range(n_files):
        with (directory / f"bill_{i:03}.csv").open("w", encoding="utf-8-sig", newline="") as f:
            f.write("导出信息：\n" + HEADER + "\n")
            writer = csv.writer(f)
            for r in range(rows_per_file):
                direction = "收入" if r % 5 == 0 else "支出"
                writer.writerow(
                    ["2024-01-01", "x", f"Shop {r}", "", f"Item {r}", direction, f"{r % 97}.50", "", ""]
                )


def run():
    with tempfile.TemporaryDirectory() as tmp:
        directory = Path(tmp)
        build_bills(directory, 12, 2000)
        catalog = FileCatalog(directory)
        catalog.refresh()
        aggregator = Aggregator(catalog)
        start = time.perf_counter()
        files = aggregator.ingest()
        duration = time.perf_counter() - start
        agg = aggregator.aggregate()
        print(f"Ingested {files} files / {len(agg)} entries in {duration:.4f}s, net {agg.net}")


if __name__ == "__main__":
    run()
