import logging

import pytest

from aggregator import TrafficAggregator
from flow_parser import (
    EMPTY_RECORD,
    FlowLogParser,
    FlowLogReadError,
    FlowRecord,
    InvalidProtocolFieldError,
    parse_flow_line,
)
from lookup_table import PortProtocol
from protocol_resolver import ProtocolResolver


@pytest.mark.parametrize("port, protocol, expected", [
    ("443", "6", "sv_P2"),
    ("53", "17", "dns"),
    ("9999", "6", "Untagged"),
    ("22", "6", "ssh"),
    ("80", "6", "web"),
    ("993", "6", "email"),
    # Unmapped protocol resolves to "unknown", which has no lookup entry
    ("53", "99", "Untagged"),
    # Port 53 is tagged for udp only
    ("53", "6", "Untagged"),
])
def test_parse_flow_line_tags(lookup_table, make_line, port, protocol, expected):
    record = parse_flow_line(make_line(port, protocol), lookup_table)
    assert record.tag == expected


def test_parse_flow_line_fields(lookup_table, make_line):
    record = parse_flow_line(make_line("443", "6"), lookup_table)

    assert record == FlowRecord("443", "tcp", "sv_P2")
    assert record.port_protocol == PortProtocol("443", "tcp")
    assert record.port_protocol.key == "443_tcp"


def test_parse_flow_line_unknown_protocol(lookup_table, make_line):
    record = parse_flow_line(make_line("53", "99"), lookup_table)
    assert record == FlowRecord("53", "unknown", "Untagged")


def test_parse_flow_line_port_case_preserved():
    table = {PortProtocol("HTTPS", "tcp"): "web"}
    line = "2 1 eni-1 10.0.0.1 10.0.0.2 HTTPS 1 6 1 1 1 1 ACCEPT OK"

    assert parse_flow_line(line, table).tag == "web"
    assert parse_flow_line(line.replace("HTTPS", "https"), table).tag == "Untagged"


def test_parse_flow_line_invalid_protocol(lookup_table, make_line):
    line = make_line("53", "abc")

    with pytest.raises(InvalidProtocolFieldError) as exc_info:
        parse_flow_line(line, lookup_table)

    assert exc_info.value.line == line
    assert exc_info.value.value == "abc"


@pytest.mark.parametrize("protocol", ["6.0", "0x6", "1_7", "x", "６"])
def test_parse_flow_line_rejects_non_integer_protocol(lookup_table, make_line, protocol):
    line = make_line("443", protocol)
    with pytest.raises(InvalidProtocolFieldError):
        parse_flow_line(line, lookup_table)


@pytest.mark.parametrize("line", [
    "",
    "   ",
    "malformed log line",
    "2 123456789012 eni-0a1b2c3d 10.0.1.201 198.51.100.2 443 49153 6 25 20000 1620140761 1620140821 ACCEPT",
])
def test_parse_flow_line_short_lines_are_empty(lookup_table, line):
    record = parse_flow_line(line, lookup_table)

    assert record == EMPTY_RECORD
    assert record.is_empty


def test_parse_flow_line_accepts_extra_fields_and_tabs(lookup_table, make_line):
    line = make_line("443", "6").replace(" ", "\t", 3) + " extra-field\n"
    assert parse_flow_line(line, lookup_table).tag == "sv_P2"


def test_parse_flow_line_custom_resolver(make_line):
    table = {PortProtocol("0", "gre"): "tunnel"}
    resolver = ProtocolResolver({47: "gre"})

    assert parse_flow_line(make_line("0", "47"), table, resolver).tag == "tunnel"


def test_iter_records_skips_bad_lines_and_continues(lookup_table, make_line, caplog):
    caplog.set_level(logging.WARNING)
    lines = [
        make_line("443", "6"),
        make_line("53", "abc"),
        "too short",
        make_line("53", "17"),
    ]
    parser = FlowLogParser(lookup_table)

    records = list(parser.iter_records(lines))

    assert [r.tag for r in records] == ["sv_P2", "dns"]
    assert parser.stats.as_dict() == {"lines": 4, "records": 2, "short_lines": 1, "invalid_lines": 1}
    assert "Invalid protocol field 'abc'" in caplog.text


def test_parse_file_streams_records(tmp_path, lookup_table, make_line):
    log_path = tmp_path / "flow.log"
    log_path.write_text("\n".join([make_line("443", "6"), make_line("9999", "6"), ""]) + "\n")
    parser = FlowLogParser(lookup_table)

    records = list(parser.parse_file(str(log_path)))

    assert records == [FlowRecord("443", "tcp", "sv_P2"), FlowRecord("9999", "tcp", "Untagged")]
    assert parser.stats.lines == 3
    assert parser.stats.short_lines == 1


def test_parse_file_missing(tmp_path, lookup_table):
    parser = FlowLogParser(lookup_table)

    with pytest.raises(FlowLogReadError):
        list(parser.parse_file(str(tmp_path / "missing.log")))


def test_parse_file_tolerates_undecodable_bytes(tmp_path, lookup_table, make_line):
    log_path = tmp_path / "flow.log"
    good = make_line("443", "6").encode()
    corrupted = make_line("53", "17").encode()[:-2] + b"\xe9K"
    log_path.write_bytes(good + b"\n" + corrupted + b"\n")
    parser = FlowLogParser(lookup_table)

    aggregator = TrafficAggregator().extend(parser.parse_file(str(log_path)))

    assert aggregator.total == 2
    assert aggregator.tag_counts == {"sv_P2": 1, "dns": 1}
    assert parser.stats.invalid_lines == 0


@pytest.mark.parametrize("protocol", ["99999999999999999999999", "9223372036854775808", "-9223372036854775809"])
def test_parse_flow_line_rejects_protocol_outside_int64(lookup_table, make_line, protocol):
    with pytest.raises(InvalidProtocolFieldError):
        parse_flow_line(make_line("443", protocol), lookup_table)


@pytest.mark.parametrize("protocol", ["9223372036854775807", "-9223372036854775808"])
def test_parse_flow_line_accepts_int64_bounds(lookup_table, make_line, protocol):
    assert parse_flow_line(make_line("443", protocol), lookup_table).protocol == "unknown"
