"""
Tests for the Ingestion Layer

Verifies:
- French number parsing ("1 234,5" -> 1234.5)
- Date parsing (ISO, DD/MM/YYYY, generic, unparseable)
- Delimiter and encoding detection
- Header alias resolution regardless of case, accents and spacing
- Address synthesis with partial-address qualifier
- Dataset parsing and store lifecycle
"""

import codecs
from datetime import date
from pathlib import Path
from unittest.mock import Mock
import sys

import pytest
import requests

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.errors import DataFormatError, DatasetNotReady, SchemaError
from core.ingestion import (
    DatasetStore,
    LoadState,
    build_address,
    decode_content,
    detect_delimiter,
    normalize_header,
    parse_date,
    parse_number,
    parse_transactions,
    resolve_columns,
)
from core.ingestion.parser import PARTIAL_ADDRESS_QUALIFIER


# =============================================================================
# Test Fixtures
# =============================================================================

DVF_HEADER = (
    "date_mutation;valeur_fonciere;adresse_numero;adresse_nom_de_voie;"
    "code_postal;nom_commune;type_local;surface_reelle_bati;"
    "nombre_pieces_principales;surface_terrain;longitude;latitude"
)


@pytest.fixture
def dvf_text():
    """Small semicolon-separated DVF extract."""
    return "\n".join([
        DVF_HEADER,
        "2024-01-15;300000,00;12;RUE DES LILAS;75011;Paris;Maison;100;4;250;2,3522;48,8566",
        "15/03/2023;1 250 000;;AVENUE FOCH;75016;Paris;Appartement;120,5;5;;2,28;48,87",
        "pas une date;abc;3;;69001;Lyon;Appartement;;2;;4,83;45,76",
        "",
    ])


# =============================================================================
# Test: Number Parsing
# =============================================================================

class TestParseNumber:
    """Tests for locale-aware number parsing."""

    @pytest.mark.parametrize("raw, expected", [
        ("1 234,5", 1234.5),
        ("1234,5", 1234.5),
        ("1234.5", 1234.5),
        ("300000,00", 300000.0),
        ("1 250 000", 1250000.0),
        ("1\u00a0234,5", 1234.5),
        ("1\u202f234,5", 1234.5),
        ("  42  ", 42.0),
        ("-0,5", -0.5),
    ])
    def test_french_formatted_numbers(self, raw, expected):
        """Thousands spaces are removed and the decimal comma converted."""
        assert parse_number(raw) == pytest.approx(expected)

    @pytest.mark.parametrize("raw", ["", "   ", None, "abc", "12,3,4", "nan", "inf", "1_000", "1_234,5"])
    def test_unparseable_returns_none(self, raw):
        """Empty or invalid input is unknown, not an error."""
        assert parse_number(raw) is None


# =============================================================================
# Test: Date Parsing
# =============================================================================

class TestParseDate:
    """Tests for transaction date parsing."""

    def test_iso_date(self):
        assert parse_date("2024-01-15") == date(2024, 1, 15)

    def test_iso_prefix_with_time(self):
        assert parse_date("2024-01-15T10:30:00") == date(2024, 1, 15)

    def test_day_first_date(self):
        assert parse_date("15/03/2023") == date(2023, 3, 15)

    def test_day_first_prefix(self):
        assert parse_date("05/06/2023 00:00") == date(2023, 6, 5)

    def test_generic_fallback(self):
        assert parse_date("15 March 2023") == date(2023, 3, 15)

    def test_compact_date(self):
        """YYYYMMDD is year first, never day first."""
        assert parse_date("20240105") == date(2024, 1, 5)

    def test_invalid_compact_date(self):
        assert parse_date("20241345") is None

    @pytest.mark.parametrize("raw", ["", "   ", None, "pas une date", "2023-13-45"])
    def test_unparseable_returns_none(self, raw):
        assert parse_date(raw) is None

    @pytest.mark.parametrize("raw", ["5", "12h", "Jan", "March 2023", "15 March"])
    def test_incomplete_dates_return_none(self, raw):
        """Missing year, month or day is never filled from the current date."""
        assert parse_date(raw) is None


# =============================================================================
# Test: Delimiter and Encoding Detection
# =============================================================================

class TestDetection:
    """Tests for delimiter and encoding detection."""

    def test_semicolon(self):
        assert detect_delimiter("a;b;c") == ";"

    def test_comma(self):
        assert detect_delimiter("a,b,c") == ","

    def test_pipe(self):
        assert detect_delimiter("a|b|c") == "|"

    def test_most_frequent_wins(self):
        assert detect_delimiter("a,b;c;d") == ";"
        assert detect_delimiter("a;b,c,d") == ","

    def test_semicolon_wins_ties(self):
        assert detect_delimiter("a;b,c") == ";"

    def test_default_comma(self):
        assert detect_delimiter("single") == ","

    def test_utf8_bom(self):
        raw = codecs.BOM_UTF8 + "valeur foncière".encode("utf-8")
        text, encoding = decode_content(raw)

        assert text == "valeur foncière"
        assert encoding == "utf-8"

    def test_no_bom_is_windows_1252(self):
        raw = "valeur foncière".encode("cp1252")
        text, encoding = decode_content(raw)

        assert text == "valeur foncière"
        assert encoding == "cp1252"


# =============================================================================
# Test: Header Resolution
# =============================================================================

class TestHeaderResolution:
    """Tests for alias-based column resolution."""

    def test_normalize_header(self):
        assert normalize_header("  Valeur   Foncière ") == "valeur fonciere"

    @pytest.mark.parametrize("price_header", [
        "Valeur Foncière",
        "valeur_fonciere",
        "VALEUR FONCIERE",
        "valeur  fonciere",
        "Prix",
    ])
    def test_price_aliases_resolve_identically(self, price_header):
        headers = [price_header, "Type local", "Surface réelle bâti", "lat", "lng"]
        columns = resolve_columns(headers)

        assert columns.index("price") == 0
        assert columns.index("property_type") == 1
        assert columns.index("living_area") == 2
        assert columns.index("latitude") == 3
        assert columns.index("longitude") == 4

    def test_optional_columns_absent(self):
        columns = resolve_columns(["prix", "type", "surface habitable", "lat", "lon"])

        assert columns.index("room_count") is None
        assert columns.optional_present == []

    def test_missing_required_columns(self):
        with pytest.raises(SchemaError) as exc_info:
            resolve_columns(["prix", "type", "surface habitable"])

        assert exc_info.value.missing == ["latitude", "longitude"]

    def test_schema_error_is_data_format_error(self):
        with pytest.raises(DataFormatError):
            resolve_columns(["foo", "bar"])


# =============================================================================
# Test: Address Synthesis
# =============================================================================

class TestBuildAddress:
    """Tests for display address synthesis."""

    def test_full_address(self):
        assert build_address("12", "RUE DES LILAS", "75011", "Paris") == (
            "12 RUE DES LILAS, 75011 Paris"
        )

    def test_missing_street_is_partial(self):
        address = build_address("12", "", "75011", "Paris")

        assert address == f"12 {PARTIAL_ADDRESS_QUALIFIER}, 75011 Paris"

    def test_without_postal_code(self):
        assert build_address("", "RUE DES LILAS", "", "Paris") == "RUE DES LILAS Paris"

    def test_empty_address(self):
        assert build_address() == "-"


# =============================================================================
# Test: Dataset Parsing
# =============================================================================

class TestParseTransactions:
    """Tests for full dataset parsing."""

    def test_parses_all_rows(self, dvf_text):
        dataset = parse_transactions(dvf_text)

        assert dataset.count == 3
        assert dataset.delimiter == ";"

    def test_first_record_fields(self, dvf_text):
        record = parse_transactions(dvf_text).records[0]

        assert record.price == 300000.0
        assert record.property_type == "Maison"
        assert record.living_area == 100.0
        assert record.room_count == 4.0
        assert record.land_area == 250.0
        assert record.latitude == pytest.approx(48.8566)
        assert record.longitude == pytest.approx(2.3522)
        assert record.address == "12 RUE DES LILAS, 75011 Paris"
        assert record.raw_date == "2024-01-15"
        assert record.parsed_date == date(2024, 1, 15)

    def test_unknown_values_are_none(self, dvf_text):
        record = parse_transactions(dvf_text).records[2]

        assert record.price is None
        assert record.living_area is None
        assert record.parsed_date is None
        assert record.is_usable is False

    def test_unusable_records_are_retained(self, dvf_text):
        """Filtering happens downstream, never at parse time."""
        records = parse_transactions(dvf_text).records

        assert len([r for r in records if not r.is_usable]) == 1

    def test_bytes_without_bom(self, dvf_text):
        dataset = parse_transactions(dvf_text.encode("cp1252"))

        assert dataset.encoding == "cp1252"
        assert dataset.count == 3

    def test_bytes_with_bom(self, dvf_text):
        dataset = parse_transactions(codecs.BOM_UTF8 + dvf_text.encode("utf-8"))

        assert dataset.encoding == "utf-8"
        assert dataset.columns.index("date") == 0

    def test_short_rows(self):
        text = "prix,type,surface,lat,lng,pieces\n250000,Maison,90"
        record = parse_transactions(text.replace("surface", "surface habitable")).records[0]

        assert record.price == 250000.0
        assert record.latitude is None
        assert record.room_count is None

    def test_missing_optional_columns(self):
        text = "prix;type;surface habitable;lat;lon\n250000;Maison;90;48,85;2,35"
        record = parse_transactions(text).records[0]

        assert record.raw_date == ""
        assert record.parsed_date is None
        assert record.land_area is None
        assert record.address == "-"

    def test_crlf_line_endings(self, dvf_text):
        dataset = parse_transactions(dvf_text.replace("\n", "\r\n"))

        assert dataset.count == 3
        assert dataset.records[0].land_area == 250.0

    def test_under_two_lines(self):
        with pytest.raises(DataFormatError):
            parse_transactions(DVF_HEADER + "\n\n")

    def test_empty_content(self):
        with pytest.raises(DataFormatError):
            parse_transactions(b"")

    def test_missing_required_column(self):
        with pytest.raises(SchemaError):
            parse_transactions("prix;type\n100;Maison")


# =============================================================================
# Test: Dataset Store
# =============================================================================

class TestDatasetStore:
    """Tests for the one-shot dataset store."""

    def test_not_ready_before_load(self):
        store = DatasetStore()

        assert store.state is LoadState.PENDING
        with pytest.raises(DatasetNotReady):
            store.records

    def test_load(self, dvf_text):
        store = DatasetStore()
        store.load(dvf_text)

        assert store.is_ready
        assert len(store.records) == 3
        assert isinstance(store.records, tuple)
        assert store.status()["count"] == 3

    def test_second_load_rejected(self, dvf_text):
        store = DatasetStore()
        store.load(dvf_text)

        with pytest.raises(RuntimeError):
            store.load(dvf_text)

    def test_failed_load(self):
        store = DatasetStore()

        with pytest.raises(DataFormatError):
            store.load("only a header")

        assert store.state is LoadState.FAILED
        assert "fewer than 2 lines" in store.error
        with pytest.raises(DatasetNotReady, match="failed to load"):
            store.records

    def test_load_from_path(self, tmp_path, dvf_text):
        path = tmp_path / "dvf_light.csv"
        path.write_bytes(dvf_text.encode("cp1252"))

        store = DatasetStore()
        dataset = store.load_from_path(path)

        assert dataset.count == 3
        assert store.status()["source"] == str(path)

    def test_load_from_missing_path(self, tmp_path):
        store = DatasetStore()

        with pytest.raises(DataFormatError, match="Dataset not found"):
            store.load_from_path(tmp_path / "missing.csv")

        assert store.state is LoadState.FAILED

    def test_load_from_url(self, dvf_text):
        response = Mock()
        response.content = dvf_text.encode("utf-8")
        session = Mock()
        session.get.return_value = response

        store = DatasetStore()
        store.load_from_url("https://example.org/dvf.csv", session=session)

        assert store.is_ready
        session.get.assert_called_once()

    def test_load_from_url_http_error(self):
        error_response = Mock(status_code=404)
        response = Mock()
        response.raise_for_status.side_effect = requests.HTTPError(response=error_response)
        session = Mock()
        session.get.return_value = response

        store = DatasetStore()
        with pytest.raises(DataFormatError, match="HTTP 404"):
            store.load_from_url("https://example.org/dvf.csv", session=session)

        assert store.state is LoadState.FAILED
