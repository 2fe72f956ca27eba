"""
protocol_resolver.py
--------------------
Maps IANA protocol numbers to the lowercase names used in the lookup table.

Usage:
    resolver = ProtocolResolver()
    resolver.resolve(6)    # "tcp"
    resolver.resolve(99)   # "unknown"
"""

from types import MappingProxyType
from typing import Dict, Mapping, Optional

from schema import PROTOCOL_NAMES, UNKNOWN_PROTOCOL


class ProtocolResolver:
    def __init__(self, names: Optional[Dict[int, str]] = None):
        source = PROTOCOL_NAMES if names is None else names
        self._names: Mapping[int, str] = MappingProxyType(
            {int(code): name.lower() for code, name in source.items()}
        )

    @property
    def names(self) -> Mapping[int, str]:
        """Read-only view of the number → name table."""
        return self._names

    def resolve(self, code: int) -> str:
        return self._names.get(code, UNKNOWN_PROTOCOL)


DEFAULT_RESOLVER = ProtocolResolver()
