"""Core modules: packet types, parsing, capture pipeline and result stores."""

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

__all__ = [
    'TrafficSnifferError',
    'ParseError',
    'UnsupportedVersion',
    'TruncatedFrame',
    'UnsupportedTransport',
    'MalformedOffset',
    'CaptureError',
    'IPv4Header',
    'TransportSegment',
    'ParsedPacket',
    'Protocol',
    'PacketParser',
    'parse_frame',
    'AnalysisPool',
    'PacketRecord',
    'ResultSink',
    'MemoryStore',
    'SqliteStore',
    'TrafficStatistics',
    'FrameInterface',
    'TunInterface',
    'PcapReplayInterface',
    'PipelineCoordinator',
    'PipelineConfig',
    'PipelineState',
]
