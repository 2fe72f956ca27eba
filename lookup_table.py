"""
lookup_table.py
---------------
Loads the user-supplied port/protocol → tag lookup table.

The lookup CSV has a header row followed by `dstport,protocol,tag` rows.
Ports and tags keep their case; protocols are lowercased so that "TCP" and
"tcp" match the same traffic. When a (port, protocol) pair appears more than
once, the last row wins.

Usage:
    table = load_lookup_table("lookup.csv")
    table[PortProtocol("443", "tcp")]   # "sv_P2"
"""

import logging
from typing import Dict, Iterable, NamedTuple, Sequence

import pandas as pd

from schema import KEY_SEPARATOR, LOOKUP_COLUMNS

logger = logging.getLogger("lookup_table")


class LoadError(Exception):
    """Raised when the lookup table file cannot be opened or has no header."""


class PortProtocol(NamedTuple):
    port: str
    protocol: str

    @property
    def key(self) -> str:
        """String form used at the report boundary, e.g. "443_tcp"."""
        return f"{self.port}{KEY_SEPARATOR}{self.protocol}"

    @classmethod
    def from_key(cls, key: str) -> "PortProtocol":
        # Protocol names never contain the separator, so split on the last one
        port, sep, protocol = key.rpartition(KEY_SEPARATOR)
        if not sep:
            raise ValueError(f"Not a port/protocol key: {key!r}")
        return cls(port, protocol)


LookupTable = Dict[PortProtocol, str]


def load_lookup_rows(rows: Iterable[Sequence[str]]) -> LookupTable:
    """
    Build a lookup table from decoded (port, protocol, tag) rows.

    The header row must already be removed. Rows that do not carry exactly
    three text fields are skipped with a warning; the scan carries on.
    """
    table: LookupTable = {}
    skipped = 0

    for row_no, row in enumerate(rows, 1):
        if len(row) != len(LOOKUP_COLUMNS) or not all(isinstance(cell, str) for cell in row):
            logger.warning(f"Skipping malformed lookup row {row_no}: {list(row)}")
            skipped += 1
            continue

        port, protocol, tag = (cell.strip() for cell in row)
        key = PortProtocol(port, protocol.lower())
        if key in table and table[key] != tag:
            logger.info(f"Lookup row {row_no} overrides {key.key}: {table[key]} -> {tag}")
        table[key] = tag

    logger.info(f"Loaded {len(table)} lookup entries ({skipped} malformed rows skipped)")
    return table


def load_lookup_table(csv_path: str) -> LookupTable:
    """
    Load the lookup table CSV at `csv_path`.

    The first line is the header; its names are not checked, but it sets how
    many columns each row is expected to have. Over-long rows and short rows
    are skipped, everything else is handed to load_lookup_rows().

    Raises:
        LoadError: the file cannot be opened or decoded, or has no header line
    """
    def _on_bad_line(fields):
        logger.warning(f"Skipping malformed lookup row: {fields}")
        return None

    try:
        with open(csv_path, "r", newline="", encoding="utf-8-sig") as handle:
            df = pd.read_csv(
                handle,
                header=None,
                dtype=str,
                keep_default_na=False,
                engine="python",
                on_bad_lines=_on_bad_line,
            )
    except pd.errors.EmptyDataError as e:
        raise LoadError(f"Lookup table {csv_path} has no header row") from e
    except (OSError, UnicodeDecodeError, pd.errors.ParserError) as e:
        raise LoadError(f"Failed to read lookup table {csv_path}: {e}") from e

    if df.empty:
        raise LoadError(f"Lookup table {csv_path} has no header row")

    header = [str(name).strip().lower() for name in df.iloc[0]]
    if header != LOOKUP_COLUMNS:
        logger.info(f"Lookup header {header} differs from {LOOKUP_COLUMNS}; using column order")

    data = df.iloc[1:]
    if data.empty:
        logger.warning(f"Lookup table {csv_path} contains no data rows")

    # Short rows come back padded with NaN; drop the padding so they fail the length check
    rows = (
        tuple(cell for cell in row if isinstance(cell, str))
        for row in data.itertuples(index=False, name=None)
    )
    return load_lookup_rows(rows)
