"""
Frame to ParsedPacket assembly: IPv4 header, transport header, classifier.
"""

from __future__ import annotations

import logging

from trafficsniffer.core.errors import ParseError
from trafficsniffer.core.packet import IPv4Header, ParsedPacket, TransportSegment, now_ms
from trafficsniffer.protocols.classifier import classify
from trafficsniffer.protocols.network import parse_ipv4
from trafficsniffer.protocols.transport import parse_transport

logger = logging.getLogger(__name__)


class PacketParser:
    """
    Decodes raw IPv4 frames into classified packets.

    Frames that cannot be decoded (non-IPv4, truncated, unsupported
    transport, bad TCP offset) produce no packet; the reason is logged at
    DEBUG level and the frame is otherwise ignored.

    Examples:
        >>> parser = PacketParser()
        >>> packet = parser.parse(frame)
        >>> if packet is not None:
        ...     print(packet.protocol, packet.endpoints)
    """

    def decode(self, frame: bytes) -> tuple[IPv4Header, TransportSegment]:
        """Decode IPv4 and transport headers, raising ParseError on failure."""
        header = parse_ipv4(frame)
        segment = parse_transport(frame, header)
        return header, segment

    def parse(self, frame: bytes, timestamp: int | None = None) -> ParsedPacket | None:
        """
        Parse and classify one frame.

        Args:
            frame: Raw IPv4 datagram
            timestamp: Capture time in ms since the epoch (default: now)

        Returns:
            ParsedPacket, or None when the frame is not analyzable
        """
        try:
            header, segment = self.decode(frame)
        except ParseError as e:
            logger.debug("Frame of %d bytes not analyzed: %s", len(frame), e)
            return None

        protocol, is_encrypted = classify(segment.payload, segment.dest_port, segment.is_tcp)

        return ParsedPacket(
            timestamp=now_ms() if timestamp is None else timestamp,
            protocol=protocol,
            source_addr=header.source_addr,
            dest_addr=header.dest_addr,
            source_port=segment.source_port,
            dest_port=segment.dest_port,
            payload=segment.payload,
            is_encrypted=is_encrypted,
        )


_default_parser = PacketParser()


def parse_frame(frame: bytes, timestamp: int | None = None) -> ParsedPacket | None:
    """Parse a frame with the default PacketParser."""
    return _default_parser.parse(frame, timestamp)
