"""CSV upload parsing."""

import csv
import io


class CSVFormatError(ValueError):
    """The uploaded file is not readable CSV."""


def parse_csv(data: bytes | str) -> list[dict[str, str]]:
    """Parse a CSV with a header row into a list of row dicts.

    Headers and values are trimmed, a UTF-8 BOM is ignored and rows with no
    non-empty cell are skipped.
    """
    if isinstance(data, bytes):
        try:
            text = data.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise CSVFormatError("CSV must be UTF-8 encoded") from exc
    else:
        text = data.removeprefix("\ufeff")

    try:
        reader = csv.DictReader(io.StringIO(text, newline=""))
        rows: list[dict[str, str]] = []
        for raw in reader:
            row = {
                key.strip(): (value or "").strip()
                for key, value in raw.items()
                # Short rows give None values; long rows give a None key.
                if key is not None
            }
            if any(row.values()):
                rows.append(row)
    except csv.Error as exc:
        raise CSVFormatError(f"Malformed CSV: {exc}") from exc
    return rows
