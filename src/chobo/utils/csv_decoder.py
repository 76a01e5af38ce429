"""Statement decoding: bytes → sanitized rows."""

import csv
import io
import logging
from dataclasses import dataclass, field

from chobo.domain.errors import CSVDecodeError, ValidationError
from chobo.utils.sanitize import sanitize_cell

logger = logging.getLogger(__name__)

# Declared encoding → Python codec. cp932 is the Windows superset of
# Shift-JIS that Japanese banks actually emit.
ENCODINGS = {
    "UTF-8": "utf-8-sig",
    "Shift-JIS": "cp932",
    "EUC-JP": "euc_jp",
    "ISO-2022-JP": "iso2022_jp",
}

DEFAULT_MAX_ROWS = 1000


@dataclass(frozen=True)
class CSVDecodeOptions:
    encoding: str = "UTF-8"
    delimiter: str = ","
    skip_rows: int = 0
    has_headers: bool = True
    max_rows: int = DEFAULT_MAX_ROWS


@dataclass(frozen=True)
class DecodedCSV:
    """Header plus sanitized data rows of a decoded statement."""

    headers: list[str]
    rows: list[dict[str, str]] = field(default_factory=list)
    encoding: str = "UTF-8"
    truncated: bool = False


def codec_for(encoding: str) -> str:
    """Return the Python codec name for a declared encoding.

    Raises:
        ValidationError: If the encoding is not supported
    """
    for name, codec in ENCODINGS.items():
        if name.lower() == encoding.strip().lower():
            return codec
    raise ValidationError(
        f"Unsupported encoding '{encoding}'. Must be one of: {', '.join(ENCODINGS)}"
    )


def decode_text(buffer: bytes, encoding: str) -> str:
    """Decode the whole buffer or fail; never returns partial text.

    Raises:
        CSVDecodeError: If any byte sequence is invalid for the encoding
    """
    codec = codec_for(encoding)
    try:
        return buffer.decode(codec)
    except UnicodeDecodeError as e:
        row = buffer[: e.start].count(b"\n") + 1
        logger.warning("Decoding as %s failed at byte %d", encoding, e.start)
        raise CSVDecodeError(f"Invalid {encoding} byte sequence", row=row, offset=e.start) from e


def decode_csv(buffer: bytes, options: CSVDecodeOptions | None = None) -> DecodedCSV:
    """Decode a statement buffer into sanitized rows.

    Args:
        buffer: Raw file contents
        options: Decoding options (encoding, delimiter, skipped rows, header flag, row cap)

    Returns:
        DecodedCSV with header names and rows keyed by header

    Raises:
        CSVDecodeError: If the buffer cannot be decoded or split
        ValidationError: If options are invalid
    """
    options = options or CSVDecodeOptions()
    if options.max_rows < 1:
        raise ValidationError("max_rows must be at least 1")
    if options.skip_rows < 0:
        raise ValidationError("skip_rows cannot be negative")
    if len(options.delimiter) != 1:
        raise ValidationError("delimiter must be a single character")

    text = decode_text(buffer, options.encoding)

    # Parse no further than the cap; one extra data record tells whether rows were cut off
    limit = options.skip_rows + (1 if options.has_headers else 0) + options.max_rows + 1
    records = []
    reader = csv.reader(io.StringIO(text, newline=""), delimiter=options.delimiter)
    try:
        for record in reader:
            cells = [cell.strip() for cell in record]
            # Skip empty lines
            if not any(cells):
                continue
            records.append(cells)
            if len(records) >= limit:
                break
    except csv.Error as e:
        raise CSVDecodeError(f"CSV parse error: {e}", row=reader.line_num) from e

    records = records[options.skip_rows:]
    if not records:
        return DecodedCSV(headers=[], rows=[], encoding=options.encoding)

    if options.has_headers:
        headers, data = records[0], records[1:]
    else:
        width = max(len(record) for record in records[: options.max_rows])
        headers, data = [f"column_{i}" for i in range(1, width + 1)], records

    truncated = len(data) > options.max_rows
    if truncated:
        logger.info("Statement truncated to %d rows", options.max_rows)
        data = data[: options.max_rows]

    rows = []
    for record in data:
        padded = record + [""] * (len(headers) - len(record))
        rows.append({header: sanitize_cell(value) for header, value in zip(headers, padded)})

    return DecodedCSV(headers=headers, rows=rows, encoding=options.encoding, truncated=truncated)


def read_headers(buffer: bytes, encoding: str, delimiter: str = ",", skip_rows: int = 0) -> list[str]:
    """Decode just enough of a buffer to return its header row.

    Undecodable buffers give an empty header list instead of an error,
    because callers probe several encodings.
    """
    try:
        decoded = decode_csv(
            buffer,
            CSVDecodeOptions(encoding=encoding, delimiter=delimiter, skip_rows=skip_rows, max_rows=1),
        )
    except CSVDecodeError:
        return []
    return decoded.headers
