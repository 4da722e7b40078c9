import csv
import sys
from pathlib import Path

import openpyxl

# Ensure the project root is on the Python path
sys.path.append(str(Path(__file__).resolve().parents[1]))

WALLET_PREAMBLE = [
    ["微信支付账单明细"],
    ["微信昵称：[jeek]"],
    ["起始时间：[2024-01-01 00:00:00] 终止时间：[2024-01-31 23:59:59]"],
    [],
    ["----------------------微信支付账单明细列表--------------------"],
]
WALLET_HEADER = [
    "交易时间", "交易类型", "交易对方", "商品", "收/支", "金额(元)", "支付方式", "当前状态",
]

BANK_PREAMBLE = [
    "------------------------------------------------------------------------------------",
    "导出信息：",
    "共2笔记录",
    "",
]
BANK_HEADER = "交易时间,交易分类,交易对方,对方账号,商品说明,收/支,金额,收/付款方式,交易状态"


def wallet_row(counterparty, description, direction, amount, when="2024-01-01 09:00:00"):
    return [when, "商户消费", counterparty, description, direction, amount, "零钱", "支付成功"]


def write_wallet_xlsx(path, rows, header=True, preamble=WALLET_PREAMBLE):
    wb = openpyxl.Workbook()
    ws = wb.active
    for line in preamble:
        ws.append(line)
    if header:
        ws.append(WALLET_HEADER)
    for row in rows:
        ws.append(row)
    wb.save(path)
    return Path(path)


def bank_record(counterparty, description, direction, amount, when="2024-01-01"):
    return [when, "餐饮美食", counterparty, "", description, direction, amount, "余额宝", "交易成功"]


def write_bank_csv(path, records, header=BANK_HEADER, bom=True, preamble=BANK_PREAMBLE):
    path = Path(path)
    with path.open("w", encoding="utf-8-sig" if bom else "utf-8", newline="") as f:
        for line in preamble:
            f.write(line + "\n")
        if header:
            f.write(header + "\n")
        writer = csv.writer(f)
        for record in records:
            writer.writerow(record)
    return path



class FakeScreen:
    """Stand-in for a curses window that records what is drawn."""

    def __init__(self, keys=(), size=(24, 80)):
        self.keys = list(keys)
        self.size = size
        self.lines = {}
        self.calls = []

    def getmaxyx(self):
        return self.size

    def addnstr(self, y, x, text, n, attr=0):
        self.lines[y] = self.lines.get(y, "") + text[:n]

    def erase(self):
        self.lines = {}
        self.calls.append("erase")

    def clear(self):
        self.lines = {}
        self.calls.append("clear")

    def refresh(self):
        self.calls.append("refresh")

    def clearok(self, flag):
        self.calls.append("clearok")

    def keypad(self, flag):
        pass

    def timeout(self, ms):
        self.calls.append(("timeout", ms))

    def getch(self):
        return self.keys.pop(0) if self.keys else ord("q")

    def text(self):
        return "\n".join(self.lines[y] for y in sorted(self.lines))
