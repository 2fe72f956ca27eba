"""
schema.py
---------
Contains shared field positions and constants for parsing AWS VPC flow logs
and the port/protocol lookup table.

Usage:
- FLOW_LOG_FIELDS defines where the fields we care about sit in a flow-log line.
- LOOKUP_COLUMNS are the positional columns of the lookup table CSV.
- PROTOCOL_NAMES is the static IANA protocol number → name table.

To support another protocol:
- Add its IANA number as the key and its lowercase name as the value.

All scripts should rely on these definitions to avoid hardcoded offsets.
"""

# Positions (0-based) of the fields we read from a default-format flow-log line
FLOW_LOG_FIELDS = {
    'dstport': 5,
    'protocol': 7,
}

# Lines with fewer whitespace-separated fields than this are discarded
MIN_FLOW_LOG_FIELDS = 14

# IANA protocol numbers → lowercase names
PROTOCOL_NAMES = {
    6: 'tcp',
    17: 'udp',
    1: 'icmp',
}

UNKNOWN_PROTOCOL = 'unknown'
UNTAGGED = 'Untagged'

# Lookup table CSV columns, in file order. Header names are not validated.
LOOKUP_COLUMNS = ['dstport', 'protocol', 'tag']

# Joins port and protocol in the string form of a composite key
KEY_SEPARATOR = '_'

# Report layout
TAG_SECTION_TITLE = 'Tag Counts:'
TAG_HEADER = ['Tag', 'Count']
PORT_PROTOCOL_SECTION_TITLE = 'Port/Protocol Combination Counts:'
PORT_PROTOCOL_HEADER = ['Port', 'Protocol', 'Count']
