"""Header parsers and protocol classification."""

from trafficsniffer.protocols.network import parse_ipv4
from trafficsniffer.protocols.transport import parse_transport, parse_tcp, parse_udp
from trafficsniffer.protocols.classifier import classify, is_http_request, is_tls_record

__all__ = [
    'parse_ipv4',
    'parse_transport',
    'parse_tcp',
    'parse_udp',
    'classify',
    'is_http_request',
    'is_tls_record',
]
