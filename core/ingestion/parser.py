"""
Transaction Dataset Parser

Turns the raw bytes of a delimited export into TransactionRecord objects.

Tolerant of:
- Encoding (UTF-8 with BOM, otherwise Windows-1252)
- Delimiter (semicolon, comma or pipe, detected from the header)
- French number formatting ("1 234,5")
- Date formats (ISO, DD/MM/YYYY, YYYYMMDD, then generic parsing)
- Header naming variants (see schema.COLUMN_ALIASES)

Rows are never rejected here: unknown values become None and the
estimation filters exclude unusable records downstream.
"""

from __future__ import annotations

import codecs
import logging
import math
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Final, Optional, Sequence, Union

from dateutil import parser as dateparser

from core.errors import DataFormatError
from core.estimation.models import TransactionRecord
from core.ingestion.schema import (
    CITY,
    DATE,
    LAND_AREA,
    LATITUDE,
    LIVING_AREA,
    LONGITUDE,
    POSTAL_CODE,
    PRICE,
    PROPERTY_TYPE,
    ROOM_COUNT,
    STREET_NAME,
    STREET_NUMBER,
    ColumnMap,
    resolve_columns,
)


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration
# =============================================================================

UTF8_ENCODING: Final = "utf-8"
FALLBACK_ENCODING: Final = "cp1252"

# Checked in order; the first wins ties
DELIMITER_CANDIDATES: Final[tuple[str, ...]] = (";", ",", "|")
DEFAULT_DELIMITER: Final = ","

PARTIAL_ADDRESS_QUALIFIER: Final = "(adresse partielle)"
EMPTY_ADDRESS: Final = "-"

_ISO_DATE_RE: Final = re.compile(r"^(\d{4})-(\d{2})-(\d{2})")
_FR_DATE_RE: Final = re.compile(r"^(\d{2})/(\d{2})/(\d{4})")
_COMPACT_DATE_RE: Final = re.compile(r"^(\d{4})(\d{2})(\d{2})$")

# Fill-in values for generic parsing; every component differs between them
_DEFAULT_A: Final = datetime(2000, 1, 1)
_DEFAULT_B: Final = datetime(2001, 2, 2)

_WHITESPACE_RE: Final = re.compile(r"\s+")
_LINE_SPLIT_RE: Final = re.compile(r"\r?\n")


@dataclass(frozen=True)
class ParsedDataset:
    """Result of parsing a dataset file."""

    records: tuple[TransactionRecord, ...]
    delimiter: str
    encoding: str
    columns: ColumnMap = field(default_factory=ColumnMap)

    @property
    def count(self) -> int:
        return len(self.records)


# =============================================================================
# Field Parsers
# =============================================================================


def decode_content(raw: bytes) -> tuple[str, str]:
    """
    Decode dataset bytes.

    Returns:
        Tuple of (text, encoding name)
    """
    if raw.startswith(codecs.BOM_UTF8):
        return raw[len(codecs.BOM_UTF8):].decode(UTF8_ENCODING, errors="replace"), UTF8_ENCODING
    return raw.decode(FALLBACK_ENCODING, errors="replace"), FALLBACK_ENCODING


def detect_delimiter(header_line: str) -> str:
    """Most frequent candidate delimiter in the header, comma if none."""
    best = DEFAULT_DELIMITER
    best_count = 0
    for candidate in DELIMITER_CANDIDATES:
        count = header_line.count(candidate)
        if count > best_count:
            best, best_count = candidate, count
    return best


def parse_number(value: Optional[str]) -> Optional[float]:
    """
    Parse a French-formatted number.

    Whitespace (thousands separators) is removed and the decimal comma
    replaced by a point. No other grouping character is accepted.
    Returns None for empty or unparseable input.
    """
    if value is None:
        return None
    text = _WHITESPACE_RE.sub("", str(value))
    # float() also accepts "1_000"
    if not text or "_" in text:
        return None
    try:
        number = float(text.replace(",", ".", 1))
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def parse_date(value: Optional[str]) -> Optional[date]:
    """
    Parse a transaction date.

    ISO (YYYY-MM-DD...) and DD/MM/YYYY... prefixes are tried first, then
    compact YYYYMMDD, then generic day-first parsing. Returns None when
    nothing matches or the text lacks a year, month or day.
    """
    if not value:
        return None
    text = value.strip()
    if not text:
        return None

    match = _ISO_DATE_RE.match(text)
    if match:
        return _safe_date(int(match[1]), int(match[2]), int(match[3]))

    match = _FR_DATE_RE.match(text)
    if match:
        return _safe_date(int(match[3]), int(match[2]), int(match[1]))

    match = _COMPACT_DATE_RE.match(text)
    if match:
        return _safe_date(int(match[1]), int(match[2]), int(match[3]))

    return _parse_generic_date(text)


def _parse_generic_date(text: str) -> Optional[date]:
    """
    Day-first parse of any other layout.

    Parsed twice against different defaults: a year, month or day missing
    from the text takes the default and makes the two results disagree.
    """
    try:
        first = dateparser.parse(text, dayfirst=True, default=_DEFAULT_A)
        second = dateparser.parse(text, dayfirst=True, default=_DEFAULT_B)
    except (ValueError, OverflowError):
        return None

    if first.date() != second.date():
        return None
    return first.date()


def _safe_date(year: int, month: int, day: int) -> Optional[date]:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def build_address(
    number: str = "",
    street: str = "",
    postal_code: str = "",
    city: str = "",
) -> str:
    """
    Display address from its components.

    "12 RUE DES LILAS, 75011 PARIS"; a missing street name is flagged
    with a partial-address qualifier.
    """
    if not any((number, street, postal_code, city)):
        return EMPTY_ADDRESS

    street_part = f"{number} {street}".strip()
    if not street:
        street_part = f"{street_part} {PARTIAL_ADDRESS_QUALIFIER}".strip()

    address = street_part
    if postal_code:
        address += f", {postal_code}"
    if city:
        address += f" {city}"

    address = address.strip()
    return address or EMPTY_ADDRESS


# =============================================================================
# Dataset Parser
# =============================================================================


def _cell(cols: Sequence[str], columns: ColumnMap, name: str) -> str:
    if not columns.has(name):
        return ""
    index = columns.index(name)
    if index >= len(cols):
        return ""
    return cols[index].strip()


def parse_row(cols: Sequence[str], columns: ColumnMap) -> TransactionRecord:
    """Build a TransactionRecord from one split row."""
    raw_date = _cell(cols, columns, DATE)

    return TransactionRecord(
        price=parse_number(_cell(cols, columns, PRICE)),
        property_type=_cell(cols, columns, PROPERTY_TYPE),
        living_area=parse_number(_cell(cols, columns, LIVING_AREA)),
        room_count=parse_number(_cell(cols, columns, ROOM_COUNT)),
        land_area=parse_number(_cell(cols, columns, LAND_AREA)),
        latitude=parse_number(_cell(cols, columns, LATITUDE)),
        longitude=parse_number(_cell(cols, columns, LONGITUDE)),
        address=build_address(
            number=_cell(cols, columns, STREET_NUMBER),
            street=_cell(cols, columns, STREET_NAME),
            postal_code=_cell(cols, columns, POSTAL_CODE),
            city=_cell(cols, columns, CITY),
        ),
        raw_date=raw_date,
        parsed_date=parse_date(raw_date),
    )


def parse_transactions(content: Union[bytes, str]) -> ParsedDataset:
    """
    Parse a delimited transaction export.

    Args:
        content: Raw file bytes (encoding detected) or already-decoded text

    Returns:
        ParsedDataset with one record per non-blank data line

    Raises:
        DataFormatError: If the file has fewer than two non-blank lines
        SchemaError: If required columns are missing
    """
    if isinstance(content, bytes):
        text, encoding = decode_content(content)
    else:
        text, encoding = content.lstrip("\ufeff"), UTF8_ENCODING

    lines = [line for line in _LINE_SPLIT_RE.split(text) if line.strip()]
    if len(lines) < 2:
        raise DataFormatError("Dataset is empty or malformed (fewer than 2 lines)")

    delimiter = detect_delimiter(lines[0])
    columns = resolve_columns(lines[0].split(delimiter))

    records = tuple(parse_row(line.split(delimiter), columns) for line in lines[1:])

    logger.info(
        "Parsed %d transactions (delimiter=%r, encoding=%s, optional columns=%s)",
        len(records),
        delimiter,
        encoding,
        ", ".join(columns.optional_present) or "none",
    )

    return ParsedDataset(
        records=records,
        delimiter=delimiter,
        encoding=encoding,
        columns=columns,
    )
