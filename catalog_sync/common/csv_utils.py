"""
CSV Utilities

Parses delimited feed documents into row dictionaries.
Handles large field sizes and short rows.
"""

import csv
import io
from typing import Dict, List


def configure_csv(field_size_limit: int = 10 * 1024 * 1024) -> None:
    """
    Configure CSV module for large fields.

    Args:
        field_size_limit: Maximum field size in bytes (default: 10MB)
    """
    csv.field_size_limit(field_size_limit)


def parse_csv_text(text: str, delimiter: str = ',') -> List[Dict[str, str]]:
    """
    Parse a delimited document whose first row is the header.

    Columns are keyed by header name. Cells missing from short rows come
    back as empty strings and fully blank lines are skipped.

    Args:
        text: Document body
        delimiter: Column delimiter (default: comma)

    Returns:
        List of dictionaries, one per data row
    """
    if not text:
        return []

    # Strip a UTF-8 BOM so the first header name matches
    text = text.lstrip('\ufeff')

    reader = csv.DictReader(io.StringIO(text), delimiter=delimiter, restval='')
    rows = []
    for row in reader:
        if not any((value or '').strip() for key, value in row.items() if key is not None):
            continue
        rows.append({key: (value or '') for key, value in row.items() if key is not None})
    return rows


def parse_tsv_lines(text: str) -> List[List[str]]:
    """
    Split tab-separated command output into rows of cells.

    Used for `mysql -N` output, which has no header and no quoting.

    Args:
        text: Raw command output

    Returns:
        List of cell lists, blank lines dropped
    """
    rows = []
    for line in text.splitlines():
        if not line.strip():
            continue
        rows.append(line.split('\t'))
    return rows


# Initialize CSV configuration on module import
configure_csv()
