import pytest

from lookup_table import PortProtocol


def flow_line(port, protocol, action="ACCEPT"):
    """Build a default-format flow-log line with `port` at field 5 and `protocol` at field 7."""
    return (
        f"2 123456789012 eni-0a1b2c3d 10.0.1.201 198.51.100.2 {port} 49153 {protocol} "
        f"25 20000 1620140761 1620140821 {action} OK"
    )


@pytest.fixture
def make_line():
    return flow_line


@pytest.fixture
def lookup_table():
    return {
        PortProtocol("25", "tcp"): "sv_P1",
        PortProtocol("443", "tcp"): "sv_P2",
        PortProtocol("23", "tcp"): "sv_P1",
        PortProtocol("53", "udp"): "dns",
        PortProtocol("110", "tcp"): "email",
        PortProtocol("993", "tcp"): "email",
        PortProtocol("80", "tcp"): "web",
        PortProtocol("22", "tcp"): "ssh",
    }


@pytest.fixture
def lookup_csv(tmp_path):
    path = tmp_path / "lookup.csv"
    path.write_text("dstport,protocol,tag\n443,tcp,sv_P2\n53,udp,dns\n25,tcp,sv_P1\n")
    return path
