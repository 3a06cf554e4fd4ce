"""
Exception hierarchy.

Parse errors are frame-scoped: they end the analysis of a single frame and
are never allowed to reach the forwarding path. ``CaptureError`` is the only
error the pipeline surfaces to its host.
"""

from __future__ import annotations


class TrafficSnifferError(Exception):
    """Base class for all trafficsniffer errors."""


class ParseError(TrafficSnifferError, ValueError):
    """A frame could not be decoded."""


class UnsupportedVersion(ParseError):
    """The frame is not an IPv4 datagram."""

    def __init__(self, version: int):
        super().__init__(f"Unsupported IP version: {version}")
        self.version = version


class TruncatedFrame(ParseError):
    """A header needs more bytes than the frame holds."""

    def __init__(self, layer: str, needed: int, available: int):
        super().__init__(
            f"Truncated {layer} header: need {needed} bytes, have {available}"
        )
        self.layer = layer
        self.needed = needed
        self.available = available


class UnsupportedTransport(ParseError):
    """The IP protocol number is neither TCP nor UDP."""

    def __init__(self, protocol_number: int):
        super().__init__(f"Unsupported transport protocol: {protocol_number}")
        self.protocol_number = protocol_number


class MalformedOffset(ParseError):
    """The TCP data offset is out of range or runs past the frame end."""

    def __init__(self, offset: int, frame_length: int):
        super().__init__(
            f"Malformed TCP data offset {offset} for frame of {frame_length} bytes"
        )
        self.offset = offset
        self.frame_length = frame_length


class CaptureError(TrafficSnifferError, OSError):
    """The capture interface could not be acquired."""
