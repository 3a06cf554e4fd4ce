"""
trafficsniffer - inline traffic inspection

Reads raw IPv4 frames from a TUN device (or replays a pcap), forwards every
frame unchanged, and analyzes copies in the background: IPv4/TCP/UDP header
decoding, HTTP/HTTPS/DNS classification with a TLS record heuristic, and a
regex scan of plaintext HTTP payloads for leaked credentials, API keys and
sensitive data.

Example usage:
    from trafficsniffer import PipelineCoordinator, PcapReplayInterface, SqliteStore

    with SqliteStore('packets.sqlite') as store:
        coordinator = PipelineCoordinator(PcapReplayInterface('traffic.pcap'), store)
        coordinator.run()

        for record in store.vulnerable_packets():
            print(f"{record.source_addr}:{record.source_port} -> "
                  f"{record.dest_addr}:{record.dest_port}  "
                  f"{record.vulnerability_count} findings")
"""

from trafficsniffer.core.errors import (
    TrafficSnifferError,
    ParseError,
    UnsupportedVersion,
    TruncatedFrame,
    UnsupportedTransport,
    MalformedOffset,
    CaptureError,
)
from trafficsniffer.core.packet import IPv4Header, TransportSegment, ParsedPacket, Protocol
from trafficsniffer.core.parser import PacketParser, parse_frame
from trafficsniffer.core.pool import AnalysisPool
from trafficsniffer.core.store import (
    PacketRecord,
    ResultSink,
    MemoryStore,
    SqliteStore,
    TrafficStatistics,
)
from trafficsniffer.core.interface import FrameInterface, TunInterface, PcapReplayInterface
from trafficsniffer.core.pipeline import PipelineCoordinator, PipelineConfig, PipelineState
from trafficsniffer.protocols import (
    parse_ipv4,
    parse_transport,
    parse_tcp,
    parse_udp,
    classify,
    is_http_request,
    is_tls_record,
)
from trafficsniffer.security import (
    Finding,
    Severity,
    VulnerabilityType,
    ScanRule,
    DEFAULT_RULES,
    VulnerabilityScanner,
    analyze,
)
from trafficsniffer.exporters import to_dataframe, to_dict, to_json, to_csv, findings_to_dict

__version__ = "0.1.0"

__all__ = [
    # Pipeline
    'PipelineCoordinator',
    'PipelineConfig',
    'PipelineState',
    'AnalysisPool',

    # Interfaces
    'FrameInterface',
    'TunInterface',
    'PcapReplayInterface',

    # Packet types and parsing
    'IPv4Header',
    'TransportSegment',
    'ParsedPacket',
    'Protocol',
    'PacketParser',
    'parse_frame',
    'parse_ipv4',
    'parse_transport',
    'parse_tcp',
    'parse_udp',
    'classify',
    'is_http_request',
    'is_tls_record',

    # Scanning
    'Finding',
    'Severity',
    'VulnerabilityType',
    'ScanRule',
    'DEFAULT_RULES',
    'VulnerabilityScanner',
    'analyze',

    # Stores
    'PacketRecord',
    'ResultSink',
    'MemoryStore',
    'SqliteStore',
    'TrafficStatistics',

    # Export
    'to_dataframe',
    'to_dict',
    'to_json',
    'to_csv',
    'findings_to_dict',

    # Errors
    'TrafficSnifferError',
    'ParseError',
    'UnsupportedVersion',
    'TruncatedFrame',
    'UnsupportedTransport',
    'MalformedOffset',
    'CaptureError',
]
