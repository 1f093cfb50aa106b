"""
Ingestion Layer

Parses DVF-style transaction exports into TransactionRecord objects and
holds the resulting dataset for the lifetime of the process.

This module is the single entry point for transaction data entering the
estimation pipeline.
"""

from core.ingestion.schema import (
    COLUMN_ALIASES,
    REQUIRED_COLUMNS,
    ColumnMap,
    normalize_header,
    resolve_columns,
)
from core.ingestion.parser import (
    ParsedDataset,
    build_address,
    decode_content,
    detect_delimiter,
    parse_date,
    parse_number,
    parse_transactions,
)
from core.ingestion.store import DatasetStore, LoadState, get_dataset_store

__all__ = [
    # Schema
    "COLUMN_ALIASES",
    "REQUIRED_COLUMNS",
    "ColumnMap",
    "normalize_header",
    "resolve_columns",
    # Parser
    "ParsedDataset",
    "build_address",
    "decode_content",
    "detect_delimiter",
    "parse_date",
    "parse_number",
    "parse_transactions",
    # Store
    "DatasetStore",
    "LoadState",
    "get_dataset_store",
]
