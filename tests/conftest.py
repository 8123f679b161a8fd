"""
Pytest fixtures for the rowbind test suite.

Provides:
- The customer table (three rows with nulls in row 2) as a typed DataTable
- The same data as an untyped table (cells hold raw text)
- Logging reset between tests
"""

from decimal import Decimal

import pytest

from rowbind_kernel.logging_config import LogContext, reset_logging
from rowbind_sources.data_table import DataTable

CUSTOMER_COLUMNS = (
    ("customer_id", int),
    ("first_name", str),
    ("last_name", str),
    ("email", str),
    ("phone_number", str),
    ("address", str),
    ("City", str),
    ("State", str),
    ("Zip", int),
    ("rewards_points", Decimal),
)

CUSTOMER_ROWS = (
    (1, "John", "Doe", "johnDoe@maxmail.com", "345-231-9234", "312 Brackish Rd",
     "Boston", "MA", "34567", Decimal("23.3")),
    (2, "Jake", "McPhelson", "Jake123@mail.com", None, "64 Back Road Drive",
     "Houston", "TX", None, None),
    (3, "Bob", "Jackson", "Jake123@vixmix.com", None, "2345 Cumberland St.",
     "Nashville", "TN", 37210, Decimal("0")),
)


def make_customer_table() -> DataTable:
    table = DataTable(CUSTOMER_COLUMNS, name="customers")
    for values in CUSTOMER_ROWS:
        table.add_row(values)
    return table


@pytest.fixture
def customer_table() -> DataTable:
    return make_customer_table()


@pytest.fixture
def untyped_table() -> DataTable:
    """Same rows, object columns: values are stored exactly as given."""
    table = DataTable(name for name, _ in CUSTOMER_COLUMNS)
    for values in CUSTOMER_ROWS:
        table.add_row(values)
    return table


@pytest.fixture(autouse=True)
def _clean_logging():
    reset_logging()
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()
