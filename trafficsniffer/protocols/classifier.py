"""
Application protocol classification (HTTP, HTTPS, DNS) and the TLS record
heuristic.

Classification only looks at the destination port and the first bytes of the
payload; no stream state is kept.
"""

from __future__ import annotations

from trafficsniffer.core.packet import Protocol


HTTP_PORT = 80
HTTPS_PORT = 443
DNS_PORT = 53

# First four bytes of the request methods we recognise (case-sensitive)
HTTP_METHOD_PREFIXES = frozenset({
    b"GET ",
    b"POST",
    b"PUT ",
    b"DELE",
    b"HEAD",
    b"PATC",
})

# TLS record content types: change_cipher_spec, alert, handshake, application_data
TLS_CONTENT_TYPES = range(20, 24)

ssl_version = {
    0x0301: "TLS 1.0",
    0x0302: "TLS 1.1",
    0x0303: "TLS 1.2",
    0x0304: "TLS 1.3",
}


def is_http_request(payload: bytes) -> bool:
    """Check whether the payload starts with a known HTTP method prefix."""
    return len(payload) >= 4 and bytes(payload[:4]) in HTTP_METHOD_PREFIXES


def is_tls_record(payload: bytes) -> bool:
    """
    Check whether the payload starts like a TLS record.

    Only the first three bytes are inspected: a content type in [20, 23]
    followed by a record version in [0x0301, 0x0304].
    """
    if len(payload) < 3:
        return False
    version = (payload[1] << 8) | payload[2]
    return payload[0] in TLS_CONTENT_TYPES and version in ssl_version


def classify(payload: bytes, dest_port: int, is_tcp: bool) -> tuple[Protocol, bool]:
    """
    Infer the application protocol and encryption likelihood of a packet.

    Args:
        payload: Transport payload bytes
        dest_port: Destination port
        is_tcp: True for TCP segments, False for UDP datagrams

    Returns:
        (protocol, is_encrypted)
    """
    if dest_port == HTTPS_PORT:
        return Protocol.HTTPS, True

    if dest_port == HTTP_PORT or is_http_request(payload):
        protocol = Protocol.HTTP
    elif is_tcp:
        protocol = Protocol.TCP
    elif dest_port == DNS_PORT:
        protocol = Protocol.DNS
    else:
        protocol = Protocol.UDP

    return protocol, is_tls_record(payload)
