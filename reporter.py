"""
reporter.py
-----------
Formats and writes the tag and port/protocol counts to CSV, Excel or the console.

Usage:
    reporter = Reporter()
    reporter.generate(tag_counts, port_protocol_counts, "output.csv")
    reporter.print_summary(tag_counts, port_protocol_counts)

The CSV report has two stacked sections, each with a title row, a header row
and one row per entry. Rows are ordered by count (highest first), then by key.
"""

import csv
from typing import IO, Iterator, List, Mapping, Tuple, Union

import pandas as pd
from openpyxl.styles import Font, PatternFill, Alignment
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.table import Table, TableStyleInfo

from lookup_table import PortProtocol
from schema import (
    PORT_PROTOCOL_HEADER,
    PORT_PROTOCOL_SECTION_TITLE,
    TAG_HEADER,
    TAG_SECTION_TITLE,
)

PortProtocolCounts = Mapping[Union[PortProtocol, Tuple[str, str], str], int]


class WriteError(Exception):
    """Raised when the report cannot be written."""


def tag_rows(tag_counts: Mapping[str, int]) -> List[Tuple[str, int]]:
    return sorted(tag_counts.items(), key=lambda item: (-item[1], item[0]))


def port_protocol_rows(port_protocol_counts: PortProtocolCounts) -> List[Tuple[str, str, int]]:
    rows = []
    for key, count in port_protocol_counts.items():
        # String keys are the "port_protocol" form and are split back apart
        port, protocol = PortProtocol.from_key(key) if isinstance(key, str) else key
        rows.append((port, protocol, count))
    return sorted(rows, key=lambda row: (-row[2], row[0], row[1]))


def _report_rows(tag_counts, port_protocol_counts) -> Iterator[list]:
    yield [TAG_SECTION_TITLE]
    yield TAG_HEADER
    for tag, count in tag_rows(tag_counts):
        yield [tag, count]

    yield [PORT_PROTOCOL_SECTION_TITLE]
    yield PORT_PROTOCOL_HEADER
    for port, protocol, count in port_protocol_rows(port_protocol_counts):
        yield [port, protocol, count]


def write_report(sink: IO[str], tag_counts: Mapping[str, int],
                 port_protocol_counts: PortProtocolCounts) -> None:
    """
    Write both count sections as CSV rows to an open text sink.

    Stops at the first failed write; rows already written stay written.

    Raises:
        WriteError: the sink rejected a write
    """
    writer = csv.writer(sink, lineterminator="\n")
    try:
        for row in _report_rows(tag_counts, port_protocol_counts):
            writer.writerow(row)
    except (OSError, csv.Error, ValueError) as e:
        raise WriteError(f"Failed writing report row: {e}") from e


class Reporter:
    def generate(self, tag_counts: Mapping[str, int],
                 port_protocol_counts: PortProtocolCounts, output_file: str) -> str:
        """Write the report to `output_file` and return the path written."""
        if output_file.lower().endswith(".xlsx"):
            self._write_excel(tag_counts, port_protocol_counts, output_file)
        else:
            try:
                with open(output_file, "w", newline="", encoding="utf-8") as f:
                    write_report(f, tag_counts, port_protocol_counts)
            except OSError as e:
                raise WriteError(f"Failed to write report {output_file}: {e}") from e

        print(f"\n✅ Report written to: {output_file}")
        print(f"🔹 {len(tag_counts)} tags, {len(port_protocol_counts)} port/protocol combinations\n")
        return output_file

    def to_frames(self, tag_counts, port_protocol_counts) -> Tuple[pd.DataFrame, pd.DataFrame]:
        tags = pd.DataFrame(tag_rows(tag_counts), columns=TAG_HEADER)
        combos = pd.DataFrame(port_protocol_rows(port_protocol_counts), columns=PORT_PROTOCOL_HEADER)
        return tags, combos

    def _write_excel(self, tag_counts, port_protocol_counts, path: str):
        tags, combos = self.to_frames(tag_counts, port_protocol_counts)
        sheets = [
            (TAG_SECTION_TITLE.rstrip(":"), "TagCounts", tags),
            ("Port Protocol Counts", "PortProtocolCounts", combos),
        ]

        try:
            with pd.ExcelWriter(path, engine="openpyxl") as writer:
                for sheet_name, table_name, df in sheets:
                    df.to_excel(writer, sheet_name=sheet_name, index=False)
                    self._style_sheet(writer.sheets[sheet_name], table_name, df)
        except OSError as e:
            raise WriteError(f"Failed to write report {path}: {e}") from e

    def _style_sheet(self, ws, table_name: str, df: pd.DataFrame):
        # Excel rejects tables without data rows
        if not df.empty:
            table_range = f"A1:{get_column_letter(len(df.columns))}{len(df) + 1}"
            table = Table(displayName=table_name, ref=table_range)
            table.tableStyleInfo = TableStyleInfo(name="TableStyleMedium9", showRowStripes=True)
            ws.add_table(table)

        # Auto-width
        for idx, col in enumerate(df.columns, 1):
            longest = int(df[col].astype(str).map(len).max()) if not df.empty else 0
            ws.column_dimensions[get_column_letter(idx)].width = min(max(len(col), longest), 50) + 2

        font = Font(bold=True)
        fill = PatternFill(start_color="D9E1F2", fill_type="solid")
        for cell in ws[1]:
            cell.font = font
            cell.fill = fill
            cell.alignment = Alignment(wrap_text=True, vertical='center')

    def print_summary(self, tag_counts, port_protocol_counts):
        if not tag_counts:
            print("No flow records to report.")
            return

        tags, combos = self.to_frames(tag_counts, port_protocol_counts)
        print(TAG_SECTION_TITLE)
        print(tags.to_string(index=False))
        print(f"\n{PORT_PROTOCOL_SECTION_TITLE}")
        print(combos.to_string(index=False))
