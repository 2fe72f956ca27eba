"""
aggregator.py
-------------
Counts tagged flow records two ways: per tag, and per (port, protocol) pair.

count_by_tag() and count_by_port_protocol() are single folds over a record
sequence. TrafficAggregator builds both in one pass so a flow log can be
streamed straight from FlowLogParser.parse_file() without keeping records.
"""

from collections import Counter
from typing import Iterable

from flow_parser import FlowRecord


def count_by_tag(records: Iterable[FlowRecord]) -> Counter:
    return Counter(record.tag for record in records if not record.is_empty)


def count_by_port_protocol(records: Iterable[FlowRecord]) -> Counter:
    return Counter(record.port_protocol for record in records if not record.is_empty)


class TrafficAggregator:
    def __init__(self):
        self.tag_counts: Counter = Counter()
        self.port_protocol_counts: Counter = Counter()
        self.total = 0

    def add(self, record: FlowRecord):
        if record.is_empty:
            return
        self.tag_counts[record.tag] += 1
        self.port_protocol_counts[record.port_protocol] += 1
        self.total += 1

    def extend(self, records: Iterable[FlowRecord]) -> "TrafficAggregator":
        for record in records:
            self.add(record)
        return self
