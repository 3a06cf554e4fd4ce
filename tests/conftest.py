"""Configuration, frame builders and fixtures for pytest tests."""

import pytest
import socket
import struct
import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


def create_ipv4_header(src='192.168.1.10', dst='10.0.0.1', proto=6, payload_len=0, ihl=5, version=4):
    """Create an IPv4 header (checksum left at zero; it is never validated)."""
    version_ihl = (version << 4) | ihl
    total_len = ihl * 4 + payload_len
    header = struct.pack('>BBHHHBBH', version_ihl, 0, total_len, 12345, 0, 64, proto, 0)
    header += socket.inet_pton(socket.AF_INET, src) + socket.inet_pton(socket.AF_INET, dst)
    # IP options, if any, are zero padding
    return header + b'\x00' * (ihl * 4 - 20)


def create_tcp_segment(sport=40000, dport=80, payload=b'', data_offset=5, flags=0x18):
    """Create a TCP segment with ``data_offset`` 32-bit words of header."""
    header = struct.pack('>HHIIBBHHH', sport, dport, 1000, 5000, data_offset << 4, flags, 8192, 0, 0)
    return header + b'\x00' * max(0, data_offset * 4 - 20) + payload


def create_udp_datagram(sport=5353, dport=53, payload=b''):
    """Create a UDP datagram."""
    return struct.pack('>HHHH', sport, dport, 8 + len(payload), 0) + payload


def build_tcp_frame(payload=b'', sport=40000, dport=80, src='192.168.1.10', dst='10.0.0.1'):
    """Raw IPv4/TCP frame."""
    segment = create_tcp_segment(sport=sport, dport=dport, payload=payload)
    return create_ipv4_header(src=src, dst=dst, proto=6, payload_len=len(segment)) + segment


def build_udp_frame(payload=b'', sport=5353, dport=53, src='192.168.1.10', dst='10.0.0.1'):
    """Raw IPv4/UDP frame."""
    datagram = create_udp_datagram(sport=sport, dport=dport, payload=payload)
    return create_ipv4_header(src=src, dst=dst, proto=17, payload_len=len(datagram)) + datagram


class FakeInterface:
    """In-memory frame interface: replays ``frames`` then raises EOFError."""

    def __init__(self, frames=(), fail_open=None, eof=True):
        self._frames = list(frames)
        self.written = []
        self.fail_open = fail_open
        self.eof = eof
        self.opened = False
        self.closed = False

    def open(self):
        if self.fail_open is not None:
            raise self.fail_open
        self.opened = True

    def read(self):
        if self._frames:
            return self._frames.pop(0)
        if self.eof:
            raise EOFError("no more frames")
        return b''

    def write(self, frame):
        self.written.append(frame)

    def close(self):
        self.closed = True


@pytest.fixture
def http_login_frame():
    """TCP frame to port 80 carrying a plaintext credential."""
    return build_tcp_frame(b'GET /login?pwd=1234 HTTP/1.1', sport=51000, dport=80)


@pytest.fixture
def tls_frame():
    """TCP frame to port 443 carrying the start of a TLS handshake record."""
    return build_tcp_frame(b'\x16\x03\x01\x02\x00\x01\x00\x01\xfc\x03\x03', sport=51001, dport=443)


@pytest.fixture
def dns_frame():
    """UDP frame to port 53."""
    return build_udp_frame(b'\x12\x34\x01\x00\x00\x01\x00\x00\x00\x00\x00\x00', dport=53)


@pytest.fixture
def sample_frames(http_login_frame, tls_frame, dns_frame):
    """A mix of analyzable and non-analyzable frames."""
    ipv6_frame = b'\x60' + b'\x00' * 39
    icmp_frame = create_ipv4_header(proto=1, payload_len=8) + b'\x08\x00' + b'\x00' * 6
    return [http_login_frame, tls_frame, ipv6_frame, dns_frame, icmp_frame, b'\x45\x00']
