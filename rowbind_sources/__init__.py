"""Concrete tabular sources: in-memory tables, CSV, XLSX and SQLAlchemy results."""

from rowbind_sources.csv_source import CsvReader, read_csv_table
from rowbind_sources.data_table import DataColumn, DataRow, DataTable, DataTableReader
from rowbind_sources.sql_source import ResultReader, read_result_table
from rowbind_sources.xlsx_source import read_xlsx_table

__all__ = [
    "CsvReader",
    "DataColumn",
    "DataRow",
    "DataTable",
    "DataTableReader",
    "ResultReader",
    "read_csv_table",
    "read_result_table",
    "read_xlsx_table",
]
