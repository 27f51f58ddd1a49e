"""Decoding of kernel TCP-table socket addresses."""

from __future__ import annotations

import re

_ADDR_RE = re.compile(r"[0-9A-Fa-f]{8}")
_PORT_RE = re.compile(r"[0-9A-Fa-f]{1,4}")


def decode_address(encoded: str) -> str:
    """Decode a ``HEXADDR:HEXPORT`` pair from ``/proc/net/tcp`` to ``ip:port``.

    The kernel prints the IPv4 address as the hex form of a host-order
    (little-endian) 32-bit word, so the bytes are read back to front::

        >>> decode_address("0100007F:0050")
        '127.0.0.1:80'

    Input that does not split into exactly two segments, or whose segments
    are not unsigned hex of the expected width, is returned unchanged.
    """
    parts = encoded.split(":")
    if len(parts) != 2:
        return encoded
    hex_addr, hex_port = parts
    if not _ADDR_RE.fullmatch(hex_addr) or not _PORT_RE.fullmatch(hex_port):
        return encoded
    octets = [str(int(hex_addr[i - 2:i], 16)) for i in range(8, 0, -2)]
    return f"{'.'.join(octets)}:{int(hex_port, 16)}"
