"""
Parse local data files into record datasets.

CSV, TSV, JSON and Excel content becomes an ordered list of
column -> value dicts, the shape every analyzer consumes.
"""

import io
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

import pandas as pd

from core.schema import parse_number

logger = logging.getLogger(__name__)

Content = Union[str, bytes]

EXCEL_EXTENSIONS = {".xlsx", ".xls"}
SUPPORTED_EXTENSIONS = {".json", ".csv", ".tsv"} | EXCEL_EXTENSIONS


class DataParseError(ValueError):
    """Raised when file content cannot be turned into records."""


def _as_text(content: Content) -> str:
    if isinstance(content, bytes):
        return content.decode("utf-8-sig")
    return content


def _frame_to_records(df: pd.DataFrame) -> List[Dict[str, Any]]:
    df = df.astype(object).where(df.notna(), None)
    return df.to_dict(orient="records")


def parse_json_content(content: Content) -> List[Dict[str, Any]]:
    """A JSON array of objects, or a single object treated as one record."""
    payload = json.loads(_as_text(content))
    if isinstance(payload, dict):
        return [payload]
    if not isinstance(payload, list) or not all(isinstance(item, dict) for item in payload):
        raise DataParseError("JSON content must be an object or an array of objects")
    return payload


def parse_delimited_content(content: Content, sep: str = ",") -> List[Dict[str, Any]]:
    """
    Parse CSV/TSV text with a header row.

    Cells stay strings; empty cells become empty strings.
    """
    text = _as_text(content)
    if not text.strip():
        raise DataParseError("Empty CSV content")

    df = pd.read_csv(
        io.StringIO(text),
        sep=sep,
        dtype=str,
        keep_default_na=False,
        skipinitialspace=True,
        skip_blank_lines=True,
    )
    df.columns = [str(col).strip() for col in df.columns]
    return df.apply(lambda col: col.str.strip()).to_dict(orient="records")


def parse_excel_content(content: Union[bytes, str, Path]) -> List[Dict[str, Any]]:
    """First worksheet of an Excel workbook, given as bytes or a file path."""
    source = io.BytesIO(content) if isinstance(content, bytes) else content
    df = pd.read_excel(source, sheet_name=0)
    return _frame_to_records(df)


def parse_data(content: Content, file_name: str) -> List[Dict[str, Any]]:
    """
    Parse file content according to the file extension.

    Args:
        content: Raw file content (bytes required for Excel)
        file_name: Name or path used to pick the parser

    Returns:
        List of records

    Raises:
        DataParseError: When the content cannot be parsed
    """
    extension = Path(file_name).suffix.lower()

    try:
        if extension == ".json":
            return parse_json_content(content)
        if extension == ".csv":
            return parse_delimited_content(content)
        if extension == ".tsv":
            return parse_delimited_content(content, sep="\t")
        if extension in EXCEL_EXTENSIONS:
            return parse_excel_content(content)

        # Unknown extension: JSON first, then CSV
        try:
            return parse_json_content(content)
        except (ValueError, UnicodeDecodeError):
            logger.debug("%s is not JSON, falling back to CSV", file_name)
            return parse_delimited_content(content)
    except DataParseError:
        raise
    except Exception as exc:
        raise DataParseError(f"Failed to parse data: {exc}") from exc


def load_file(path: Union[str, Path]) -> List[Dict[str, Any]]:
    """Read a local data file and parse it into records."""
    path = Path(path)
    if not path.exists():
        logger.warning("Data file not found: %s", path)
        raise FileNotFoundError(f"Data file not found: {path}")

    extension = path.suffix.lower()
    content: Content = path.read_bytes() if extension in EXCEL_EXTENSIONS else path.read_text(encoding="utf-8-sig")
    records = parse_data(content, path.name)
    logger.info("Loaded %d records from %s", len(records), path.name)
    return records


def process_excel_range(values: Optional[Sequence[Sequence[Any]]]) -> List[Dict[str, Any]]:
    """
    Convert a worksheet used-range (header row followed by rows) into records.

    Short rows are padded with None.
    """
    if not values:
        return []

    headers, *rows = values
    return [
        {header: (row[i] if i < len(row) else None) for i, header in enumerate(headers)}
        for row in rows
    ]


def _clean_value(value: Any) -> Any:
    if isinstance(value, str):
        value = value.strip()
        if value == "":
            return None
        parsed = parse_number(value)
        if parsed.ok:
            # int() first so large integers keep every digit
            try:
                return int(value)
            except ValueError:
                return parsed.value
    return value


def clean_data(records: Any) -> List[Dict[str, Any]]:
    """
    Normalize raw records.

    Trims strings, turns empty strings into None, converts numeric strings
    to numbers and drops rows with no values at all.
    """
    if not isinstance(records, list):
        raise ValueError("Data must be a list of records")

    cleaned = []
    for row in records:
        cleaned_row = {key: _clean_value(value) for key, value in row.items()}
        if any(value is not None and value != "" for value in cleaned_row.values()):
            cleaned.append(cleaned_row)
    return cleaned
