import pytest

from tests import helpers  # noqa: F401  # ensures project root on sys.path
from termdash.services import Aggregator, FileCatalog


@pytest.fixture
def bill_dir(tmp_path):
    d = tmp_path / "bill"
    d.mkdir()
    return d


@pytest.fixture
def catalog(bill_dir):
    return FileCatalog(bill_dir)


@pytest.fixture
def aggregator(catalog):
    return Aggregator(catalog)
