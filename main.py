"""
main.py
-------
Entry point for the flow-log tagger.

    python main.py <lookup_table.csv> <flow_log.txt> [output.csv|output.xlsx]

Tags every flow-log line from the lookup table and writes tag and
port/protocol counts. Without an output path the counts are printed to the
console instead.
"""

import argparse
import logging
import sys

from aggregator import TrafficAggregator
from flow_parser import FlowLogParser, FlowLogReadError
from lookup_table import LoadError, load_lookup_table
from reporter import Reporter, WriteError

logger = logging.getLogger("main")


def run_cli(args) -> int:
    try:
        table = load_lookup_table(args.lookup_table)
    except LoadError as e:
        print(f"❌ Error reading lookup table: {e}")
        return 1
    print(f"✅ Loaded {len(table)} lookup entries from {args.lookup_table}")

    parser = FlowLogParser(table)
    aggregator = TrafficAggregator()
    try:
        aggregator.extend(parser.parse_file(args.flow_log))
    except FlowLogReadError as e:
        print(f"❌ Error reading flow log: {e}")
        return 1

    stats = parser.stats
    print(f"✔ Parsed {stats.records} flow records from {stats.lines} lines")
    if stats.invalid_lines:
        print(f"⚠ Skipped {stats.invalid_lines} lines with an invalid protocol field")

    reporter = Reporter()
    if args.output:
        try:
            reporter.generate(aggregator.tag_counts, aggregator.port_protocol_counts, args.output)
        except WriteError as e:
            print(f"❌ Failed to create report: {e}")
            return 1

    if args.print or not args.output:
        reporter.print_summary(aggregator.tag_counts, aggregator.port_protocol_counts)

    return 0


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Tag AWS VPC flow logs by destination port and protocol")
    parser.add_argument("lookup_table", help="Path to the port/protocol → tag lookup CSV")
    parser.add_argument("flow_log", help="Path to the flow log file")
    parser.add_argument("output", nargs="?", help="Output report path (.csv or .xlsx); prints to console if omitted")
    parser.add_argument("--print", action="store_true", help="Also print the counts to the console")
    parser.add_argument("--log-level", default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="Logging level")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level),
                        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    logger.debug(f"Arguments: {vars(args)}")
    return run_cli(args)


if __name__ == "__main__":
    sys.exit(main())
