"""
Packet value types.

Header and packet records produced by the parsers. All of them are frozen:
a frame is decoded once and the result is shared read-only between the
classifier, the scanner and the result sink.
"""

from __future__ import annotations

import socket
import time
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import dpkt


IP_PROTO_TCP = 6
IP_PROTO_UDP = 17


class Protocol(Enum):
    """Application or transport protocol assigned by the classifier."""
    TCP = "TCP"
    UDP = "UDP"
    HTTP = "HTTP"
    HTTPS = "HTTPS"
    DNS = "DNS"
    UNKNOWN = "UNKNOWN"


@dataclass(frozen=True, slots=True)
class IPv4Header:
    """IPv4 layer information."""
    version: int
    header_length: int
    protocol_number: int
    source_addr: str
    dest_addr: str

    @property
    def is_tcp(self) -> bool:
        return self.protocol_number == IP_PROTO_TCP

    @property
    def is_udp(self) -> bool:
        return self.protocol_number == IP_PROTO_UDP

    @classmethod
    def from_dpkt(cls, ip: dpkt.ip.IP) -> IPv4Header:
        return cls(
            version=ip.v,
            header_length=ip.hl * 4,
            protocol_number=ip.p,
            source_addr=socket.inet_ntop(socket.AF_INET, ip.src),
            dest_addr=socket.inet_ntop(socket.AF_INET, ip.dst),
        )


@dataclass(frozen=True, slots=True)
class TransportSegment:
    """TCP segment or UDP datagram information."""
    protocol_number: int
    source_port: int
    dest_port: int
    header_length: int
    payload: bytes = b""

    @property
    def is_tcp(self) -> bool:
        return self.protocol_number == IP_PROTO_TCP


@dataclass(frozen=True, slots=True)
class ParsedPacket:
    """A classified packet, ready for vulnerability scanning.

    Attributes:
        timestamp: Capture time in milliseconds since the epoch
        protocol: Protocol assigned by the classifier
        source_addr: Dotted-decimal source address
        dest_addr: Dotted-decimal destination address
        source_port: Transport source port
        dest_port: Transport destination port
        payload: Bytes following the transport header (may be empty)
        is_encrypted: Whether the payload is believed to be encrypted
    """
    timestamp: int
    protocol: Protocol
    source_addr: str
    dest_addr: str
    source_port: int
    dest_port: int
    payload: bytes = b""
    is_encrypted: bool = False

    @property
    def endpoints(self) -> str:
        """``src:sport -> dst:dport`` summary of the packet."""
        return (f"{self.source_addr}:{self.source_port} -> "
                f"{self.dest_addr}:{self.dest_port}")

    @property
    def has_payload(self) -> bool:
        return len(self.payload) > 0

    def to_dict(self) -> dict:
        return {
            'timestamp': self.timestamp,
            'protocol': self.protocol.value,
            'source_addr': self.source_addr,
            'dest_addr': self.dest_addr,
            'source_port': self.source_port,
            'dest_port': self.dest_port,
            'payload_length': len(self.payload),
            'is_encrypted': self.is_encrypted,
        }


def now_ms() -> int:
    """Current wall-clock time in milliseconds since the epoch."""
    return time.time_ns() // 1_000_000
