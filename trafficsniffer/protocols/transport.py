"""
Transport layer parsing (TCP, UDP).

Headers are decoded with dpkt from the bytes following the IPv4 header. The
payload is always sliced from the frame itself, so the IP total length field
never shortens it.
"""

from __future__ import annotations

from trafficsniffer.core.errors import MalformedOffset, TruncatedFrame, UnsupportedTransport
from trafficsniffer.core.packet import IP_PROTO_TCP, IP_PROTO_UDP, IPv4Header, TransportSegment


TCP_MIN_HEADER_LEN = 20
TCP_MAX_HEADER_LEN = 60
UDP_HEADER_LEN = 8


def parse_tcp(frame: bytes, header: IPv4Header) -> TransportSegment:
    """Parse the TCP segment following the IPv4 header."""
    import dpkt

    start = header.header_length
    if len(frame) < start + TCP_MIN_HEADER_LEN:  # Min TCP header size
        raise TruncatedFrame('tcp', start + TCP_MIN_HEADER_LEN, len(frame))

    try:
        tcp = dpkt.tcp.TCP(frame[start:])
    except dpkt.NeedData:
        raise TruncatedFrame('tcp', start + TCP_MIN_HEADER_LEN, len(frame)) from None
    except dpkt.UnpackError:
        # data offset below 5 words
        raise MalformedOffset((frame[start + 12] >> 4) * 4, len(frame)) from None

    data_offset = tcp.off * 4
    if not TCP_MIN_HEADER_LEN <= data_offset <= TCP_MAX_HEADER_LEN \
            or start + data_offset > len(frame):
        raise MalformedOffset(data_offset, len(frame))

    return TransportSegment(
        protocol_number=IP_PROTO_TCP,
        source_port=tcp.sport,
        dest_port=tcp.dport,
        header_length=data_offset,
        payload=bytes(frame[start + data_offset:]),
    )


def parse_udp(frame: bytes, header: IPv4Header) -> TransportSegment:
    """Parse the UDP datagram following the IPv4 header."""
    import dpkt

    start = header.header_length
    if len(frame) < start + UDP_HEADER_LEN:  # UDP header is 8 bytes
        raise TruncatedFrame('udp', start + UDP_HEADER_LEN, len(frame))

    try:
        udp = dpkt.udp.UDP(frame[start:])
    except dpkt.UnpackError:
        raise TruncatedFrame('udp', start + UDP_HEADER_LEN, len(frame)) from None

    # length and checksum fields are skipped
    return TransportSegment(
        protocol_number=IP_PROTO_UDP,
        source_port=udp.sport,
        dest_port=udp.dport,
        header_length=UDP_HEADER_LEN,
        payload=bytes(frame[start + UDP_HEADER_LEN:]),
    )


def parse_transport(frame: bytes, header: IPv4Header) -> TransportSegment:
    """
    Parse the transport header selected by the IPv4 protocol number.

    Args:
        frame: The whole raw frame, IPv4 header included
        header: IPv4 header previously decoded from ``frame``

    Returns:
        TransportSegment with ports and payload

    Raises:
        UnsupportedTransport: Protocol number other than TCP (6) or UDP (17)
        TruncatedFrame: Frame too short for the minimal transport header
        MalformedOffset: TCP data offset out of range or past the frame end
    """
    if header.protocol_number == IP_PROTO_TCP:
        return parse_tcp(frame, header)
    if header.protocol_number == IP_PROTO_UDP:
        return parse_udp(frame, header)
    raise UnsupportedTransport(header.protocol_number)
