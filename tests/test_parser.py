"""Test frame to ParsedPacket assembly."""

import logging

import pytest

from trafficsniffer.core.errors import UnsupportedTransport, UnsupportedVersion
from trafficsniffer.core.packet import ParsedPacket, Protocol
from trafficsniffer.core.parser import PacketParser, parse_frame
from trafficsniffer.security.rules import Severity, VulnerabilityType
from trafficsniffer.security.scanner import analyze

from conftest import build_tcp_frame, build_udp_frame, create_ipv4_header


def test_end_to_end_http_credentials(http_login_frame):
    """Test a plaintext login request through parser and scanner."""
    packet = parse_frame(http_login_frame, timestamp=1234)

    assert packet is not None
    assert packet.protocol is Protocol.HTTP
    assert packet.is_encrypted is False
    assert packet.timestamp == 1234
    assert packet.source_addr == '192.168.1.10'
    assert packet.dest_addr == '10.0.0.1'
    assert packet.source_port == 51000
    assert packet.dest_port == 80
    assert packet.payload == b'GET /login?pwd=1234 HTTP/1.1'

    findings = analyze(packet)
    assert [(f.type, f.severity) for f in findings] == [
        (VulnerabilityType.INSECURE_HTTP, Severity.HIGH),
        (VulnerabilityType.UNENCRYPTED_CREDENTIALS, Severity.CRITICAL),
    ]


def test_https_frame(tls_frame):
    packet = parse_frame(tls_frame)
    assert packet.protocol is Protocol.HTTPS
    assert packet.is_encrypted is True
    assert analyze(packet) == []


def test_dns_frame(dns_frame):
    packet = parse_frame(dns_frame)
    assert packet.protocol is Protocol.DNS
    assert packet.dest_port == 53


def test_default_timestamp_is_now():
    packet = parse_frame(build_udp_frame(b'x', dport=9999))
    assert packet.protocol is Protocol.UDP
    assert packet.timestamp > 1_600_000_000_000


@pytest.mark.parametrize('frame', [
    b'',
    b'\x45' * 19,
    b'\x60' + b'\x00' * 39,
    create_ipv4_header(proto=99, payload_len=8) + b'\x00' * 8,
    create_ipv4_header(proto=6) + b'\x00' * 5,
])
def test_unparseable_frames_yield_none(frame):
    """Test frames that cannot be decoded produce no packet and no error."""
    assert parse_frame(frame) is None


def test_parse_failure_logged_at_debug(caplog):
    with caplog.at_level(logging.DEBUG, logger='trafficsniffer.core.parser'):
        assert PacketParser().parse(b'\x60' + b'\x00' * 39) is None
    assert 'Unsupported IP version: 6' in caplog.text


def test_decode_raises():
    """Test decode surfaces the parse error."""
    parser = PacketParser()
    with pytest.raises(UnsupportedVersion):
        parser.decode(b'\x60' + b'\x00' * 39)
    with pytest.raises(UnsupportedTransport):
        parser.decode(create_ipv4_header(proto=99, payload_len=8) + b'\x00' * 8)


def test_decode_returns_headers():
    header, segment = PacketParser().decode(build_tcp_frame(b'hi', sport=1, dport=2))
    assert header.is_tcp
    assert (segment.source_port, segment.dest_port, segment.payload) == (1, 2, b'hi')


def test_parsed_packet_helpers():
    packet = parse_frame(build_tcp_frame(b'', sport=3000, dport=8080), timestamp=5)
    assert isinstance(packet, ParsedPacket)
    assert packet.endpoints == '192.168.1.10:3000 -> 10.0.0.1:8080'
    assert not packet.has_payload
    assert packet.to_dict() == {
        'timestamp': 5,
        'protocol': 'TCP',
        'source_addr': '192.168.1.10',
        'dest_addr': '10.0.0.1',
        'source_port': 3000,
        'dest_port': 8080,
        'payload_length': 0,
        'is_encrypted': False,
    }
