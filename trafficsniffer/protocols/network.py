"""
Network layer parsing (IPv4).
"""

from __future__ import annotations

from trafficsniffer.core.errors import TruncatedFrame, UnsupportedVersion
from trafficsniffer.core.packet import IPv4Header


IPV4_MIN_HEADER_LEN = 20
IPV4_MAX_HEADER_LEN = 60


def parse_ipv4(frame: bytes) -> IPv4Header:
    """
    Decode the IPv4 header at the start of a raw frame.

    The checksum and total length fields are not consulted.

    Args:
        frame: Raw network-layer datagram

    Returns:
        IPv4Header for the frame

    Raises:
        TruncatedFrame: Frame shorter than 20 bytes, or IHL outside [20, 60]
            or larger than the frame
        UnsupportedVersion: Version nibble is not 4
    """
    import dpkt

    if len(frame) < IPV4_MIN_HEADER_LEN:  # Min IPv4 header size
        raise TruncatedFrame('ipv4', IPV4_MIN_HEADER_LEN, len(frame))

    try:
        ip = dpkt.ip.IP(frame)
    except dpkt.UnpackError:
        # dpkt rejects IHL < 5 before any field is exposed
        version = frame[0] >> 4
        if version != 4:
            raise UnsupportedVersion(version) from None
        raise TruncatedFrame('ipv4', IPV4_MIN_HEADER_LEN, len(frame)) from None

    if ip.v != 4:
        raise UnsupportedVersion(ip.v)

    header = IPv4Header.from_dpkt(ip)
    if not IPV4_MIN_HEADER_LEN <= header.header_length <= IPV4_MAX_HEADER_LEN \
            or header.header_length > len(frame):
        raise TruncatedFrame('ipv4', header.header_length, len(frame))
    return header
