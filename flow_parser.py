"""
flow_parser.py
--------------
Turns AWS VPC flow-log lines (default v2 format) into tagged flow records.

Only two fields are read: the destination port (field 5) and the IANA
protocol number (field 7). Lines with fewer than 14 fields are treated as
empty and dropped; lines with a non-numeric protocol raise
InvalidProtocolFieldError, which FlowLogParser logs and skips.
"""

import logging
import re
from dataclasses import dataclass
from typing import Iterable, Iterator

from lookup_table import LookupTable, PortProtocol
from protocol_resolver import DEFAULT_RESOLVER, ProtocolResolver
from schema import FLOW_LOG_FIELDS, MIN_FLOW_LOG_FIELDS, UNTAGGED

logger = logging.getLogger("flow_parser")

_PROTOCOL_NUMBER = re.compile(r"[+-]?[0-9]+")

# Protocol numbers must fit a signed 64-bit integer
_PROTOCOL_MIN = -(2 ** 63)
_PROTOCOL_MAX = 2 ** 63 - 1


class ParseError(Exception):
    """Base class for flow-log parsing failures."""


class InvalidProtocolFieldError(ParseError):
    def __init__(self, line: str, value: str):
        super().__init__(f"Invalid protocol field {value!r} in flow log line: {line.strip()}")
        self.line = line
        self.value = value


class FlowLogReadError(ParseError):
    """The flow-log file could not be opened or read."""


@dataclass(frozen=True)
class FlowRecord:
    port: str
    protocol: str
    tag: str

    @property
    def is_empty(self) -> bool:
        return self.port == ""

    @property
    def port_protocol(self) -> PortProtocol:
        return PortProtocol(self.port, self.protocol)


EMPTY_RECORD = FlowRecord("", "", "")


def parse_flow_line(line: str, table: LookupTable,
                    resolver: ProtocolResolver = DEFAULT_RESOLVER) -> FlowRecord:
    """
    Parse one flow-log line and tag it from `table`.

    Returns EMPTY_RECORD for lines with too few fields.

    Raises:
        InvalidProtocolFieldError: the protocol field is not a 64-bit integer
    """
    fields = line.split()
    if len(fields) < MIN_FLOW_LOG_FIELDS:
        return EMPTY_RECORD

    port = fields[FLOW_LOG_FIELDS['dstport']]
    raw_protocol = fields[FLOW_LOG_FIELDS['protocol']]
    if not _PROTOCOL_NUMBER.fullmatch(raw_protocol):
        raise InvalidProtocolFieldError(line, raw_protocol)

    code = int(raw_protocol)
    if not _PROTOCOL_MIN <= code <= _PROTOCOL_MAX:
        raise InvalidProtocolFieldError(line, raw_protocol)

    protocol = resolver.resolve(code)
    tag = table.get(PortProtocol(port, protocol), UNTAGGED)
    return FlowRecord(port, protocol, tag)


class ParseStats:
    def __init__(self):
        self.lines = 0
        self.records = 0
        self.short_lines = 0
        self.invalid_lines = 0

    def as_dict(self):
        return {
            "lines": self.lines,
            "records": self.records,
            "short_lines": self.short_lines,
            "invalid_lines": self.invalid_lines,
        }

    def __repr__(self):
        return f"ParseStats({self.as_dict()})"


class FlowLogParser:
    def __init__(self, table: LookupTable, resolver: ProtocolResolver = DEFAULT_RESOLVER):
        self.table = table
        self.resolver = resolver
        self.stats = ParseStats()

    def iter_records(self, lines: Iterable[str]) -> Iterator[FlowRecord]:
        """Yield a record for every usable line, skipping short and invalid ones."""
        for line_no, line in enumerate(lines, 1):
            self.stats.lines += 1
            try:
                record = parse_flow_line(line, self.table, self.resolver)
            except InvalidProtocolFieldError as e:
                self.stats.invalid_lines += 1
                logger.warning(f"Line {line_no}: {e}")
                continue

            if record.is_empty:
                self.stats.short_lines += 1
                continue

            self.stats.records += 1
            yield record

    def parse_file(self, log_path: str) -> Iterator[FlowRecord]:
        """
        Stream records from the flow-log file at `log_path`.

        The file is read line by line and closed once the generator finishes
        or is closed. Bytes that are not valid UTF-8 are replaced rather than
        failing the run.

        Raises:
            FlowLogReadError: the file cannot be opened or read
        """
        try:
            handle = open(log_path, "r", encoding="utf-8", errors="replace")
        except OSError as e:
            raise FlowLogReadError(f"Failed to open flow log {log_path}: {e}") from e

        with handle:
            try:
                yield from self.iter_records(handle)
            except OSError as e:
                raise FlowLogReadError(f"Failed to read flow log {log_path}: {e}") from e

        logger.info(f"Parsed {log_path}: {self.stats}")
