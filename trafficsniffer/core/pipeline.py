"""
PipelineCoordinator - capture, forward and analyze frames.

A single reader thread owns the frame interface. Every frame it reads is
written back out unmodified before its analysis (parse, classify, scan,
store) is handed to a bounded worker pool, so analysis never delays
forwarding.
"""

from __future__ import annotations

import logging
import threading
import warnings
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Callable, Protocol as TypingProtocol

from trafficsniffer.core.errors import CaptureError
from trafficsniffer.core.packet import now_ms
from trafficsniffer.core.parser import PacketParser
from trafficsniffer.core.pool import AnalysisPool
from trafficsniffer.core.store import PacketRecord
from trafficsniffer.security.scanner import VulnerabilityScanner

if TYPE_CHECKING:
    from trafficsniffer.core.interface import FrameInterface
    from trafficsniffer.core.packet import ParsedPacket
    from trafficsniffer.core.store import ResultSink
    from trafficsniffer.security.rules import Finding

logger = logging.getLogger(__name__)

MAX_ERRORS_KEPT = 100


class Scanner(TypingProtocol):
    def analyze(self, packet: ParsedPacket) -> list[Finding]:
        ...


@dataclass
class PipelineConfig:
    """Configuration for the pipeline coordinator."""
    max_workers: int = 4
    max_pending: int = 1024
    idle_wait: float = 0.01
    drain_timeout: float | None = 5.0

    def validate(self) -> None:
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {self.max_workers}")
        if self.max_pending < 1:
            raise ValueError(f"max_pending must be >= 1, got {self.max_pending}")
        if self.idle_wait < 0:
            raise ValueError(f"idle_wait must be >= 0, got {self.idle_wait}")
        if self.drain_timeout is not None and self.drain_timeout < 0:
            raise ValueError(f"drain_timeout must be >= 0 or None, got {self.drain_timeout}")
        if self.max_pending < self.max_workers:
            warnings.warn(
                f"max_pending ({self.max_pending}) is smaller than max_workers "
                f"({self.max_workers}); some workers will stay idle.",
                stacklevel=3,
            )


class PipelineState(Enum):
    STOPPED = "stopped"
    RUNNING = "running"


class PipelineCoordinator:
    """
    Drives the capture loop.

    Args:
        interface: Frame interface to read from and forward to
        sink: Result sink receiving one PacketRecord per analyzed packet
        scanner: Object with ``analyze(packet) -> list[Finding]``
            (default: VulnerabilityScanner with the default rules)
        parser: PacketParser used to decode frames (default: PacketParser())
        on_findings: Optional callback ``(packet, findings)`` invoked from a
            worker thread after a record with findings has been stored
        max_workers: Analysis worker threads (default: 4)
        max_pending: Maximum analyses in flight before new ones are dropped
            (default: 1024)
        idle_wait: Seconds to wait after an empty read (default: 0.01)
        drain_timeout: Seconds ``stop(drain=True)`` waits for in-flight
            analyses; None waits indefinitely (default: 5.0)
        config: PipelineConfig overriding the keyword settings above

    Examples:
        Replay a capture into an in-memory store:
            >>> from trafficsniffer import PipelineCoordinator, PcapReplayInterface, MemoryStore
            >>> store = MemoryStore()
            >>> coordinator = PipelineCoordinator(PcapReplayInterface('traffic.pcap'), store)
            >>> coordinator.run()
            >>> print(store.statistics())

        Live capture on a TUN device:
            >>> coordinator = PipelineCoordinator(TunInterface('tun0'), SqliteStore('packets.sqlite'))
            >>> coordinator.start()
            >>> ...
            >>> coordinator.stop()
    """

    def __init__(
        self,
        interface: FrameInterface,
        sink: ResultSink,
        scanner: Scanner | None = None,
        parser: PacketParser | None = None,
        on_findings: Callable[[ParsedPacket, list[Finding]], None] | None = None,
        max_workers: int = 4,
        max_pending: int = 1024,
        idle_wait: float = 0.01,
        drain_timeout: float | None = 5.0,
        config: PipelineConfig | None = None,
    ):
        if config is None:
            config = PipelineConfig(
                max_workers=max_workers,
                max_pending=max_pending,
                idle_wait=idle_wait,
                drain_timeout=drain_timeout,
            )
        config.validate()
        self.config = config

        self._interface = interface
        self._sink = sink
        self._scanner = scanner if scanner is not None else VulnerabilityScanner()
        self._parser = parser if parser is not None else PacketParser()
        self._on_findings = on_findings

        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._state = PipelineState.STOPPED
        self._thread: threading.Thread | None = None
        self._pool: AnalysisPool | None = None
        self.error: BaseException | None = None

        # Statistics
        self._stats_lock = threading.Lock()
        self._stats = {
            'frames_read': 0,
            'frames_forwarded': 0,
            'packets_parsed': 0,
            'frames_skipped': 0,
            'records_stored': 0,
            'findings': 0,
            'analyses_failed': 0,
        }
        self._errors: deque[str] = deque(maxlen=MAX_ERRORS_KEPT)

    @property
    def state(self) -> PipelineState:
        with self._lock:
            return self._state

    @property
    def is_running(self) -> bool:
        return self.state is PipelineState.RUNNING

    @property
    def stats(self) -> dict:
        """Snapshot of the pipeline counters."""
        with self._stats_lock:
            stats = dict(self._stats)
            stats['errors'] = list(self._errors)
        stats['analyses_dropped'] = self._pool.dropped if self._pool is not None else 0
        stats['analyses_pending'] = self._pool.pending if self._pool is not None else 0
        return stats

    def _bump(self, key: str, n: int = 1) -> None:
        with self._stats_lock:
            self._stats[key] += n

    def start(self) -> None:
        """
        Acquire the interface and start the reader thread.

        Raises:
            CaptureError: The interface could not be opened; the pipeline
                stays stopped
            RuntimeError: The pipeline is already running
        """
        with self._lock:
            if self._state is PipelineState.RUNNING:
                raise RuntimeError("Pipeline is already running")
            try:
                self._interface.open()
            except (OSError, ValueError) as e:
                raise CaptureError(f"Failed to acquire capture interface: {e}") from e

            # The loop may have ended on its own without stop()
            if self._pool is not None and not self._pool.closed:
                self._pool.shutdown(wait=False)

            self.error = None
            self._stop_event.clear()
            self._pool = AnalysisPool(max_workers=self.config.max_workers,
                                      max_pending=self.config.max_pending)
            self._state = PipelineState.RUNNING
            self._thread = threading.Thread(target=self._capture_loop,
                                            name="trafficsniffer-capture", daemon=True)
            self._thread.start()
        logger.info("Pipeline started")

    def wait(self, timeout: float | None = None) -> bool:
        """Wait for the reader thread to exit; returns True if it has."""
        thread = self._thread
        if thread is None:
            return True
        thread.join(timeout)
        return not thread.is_alive()

    def stop(self, drain: bool = True) -> bool:
        """
        Stop the capture loop and release the interface.

        Args:
            drain: Wait up to ``drain_timeout`` for scheduled analyses;
                otherwise cancel queued ones and abandon running ones

        Returns:
            True if every scheduled analysis had finished on return
        """
        self._stop_event.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join()

        pool = self._pool
        if pool is None or pool.closed:
            return pool is None or pool.pending == 0
        drained = pool.shutdown(wait=drain, cancel_pending=not drain,
                                timeout=self.config.drain_timeout)
        logger.info("Pipeline stopped (%d frames forwarded)", self.stats['frames_forwarded'])
        return drained

    def run(self, drain: bool = True) -> None:
        """Run until the source is exhausted, the loop fails, or Ctrl+C."""
        self.start()
        try:
            while not self.wait(timeout=0.5):
                pass
        except KeyboardInterrupt:
            logger.info("Interrupted")
        finally:
            self.stop(drain=drain)

    def __enter__(self) -> PipelineCoordinator:
        self.start()
        return self

    def __exit__(self, *args) -> None:
        self.stop()

    def _capture_loop(self) -> None:
        interface = self._interface
        pool = self._pool
        try:
            while not self._stop_event.is_set():
                try:
                    frame = interface.read()
                except EOFError:
                    logger.info("Frame source exhausted")
                    break
                if not frame:
                    self._stop_event.wait(self.config.idle_wait)
                    continue

                frame = bytes(frame)
                self._bump('frames_read')
                interface.write(frame)
                self._bump('frames_forwarded')
                pool.submit(self._analyze_frame, frame, now_ms())
        except Exception as e:
            self.error = e
            logger.exception("Capture loop stopped by interface error")
        finally:
            try:
                interface.close()
            except OSError:
                logger.exception("Failed to close capture interface")
            with self._lock:
                self._state = PipelineState.STOPPED

    def _analyze_frame(self, frame: bytes, timestamp: int) -> PacketRecord | None:
        """Analysis task for one frame; never raises."""
        try:
            packet = self._parser.parse(frame, timestamp)
            if packet is None:
                self._bump('frames_skipped')
                return None
            self._bump('packets_parsed')

            findings = list(self._scanner.analyze(packet))
            record = PacketRecord.from_packet(packet, findings)
            self._sink.store(record)
            self._bump('records_stored')

            if findings:
                self._bump('findings', len(findings))
                if self._on_findings is not None:
                    self._on_findings(packet, findings)
            return record
        except Exception as e:
            self._bump('analyses_failed')
            with self._stats_lock:
                self._errors.append(f"{type(e).__name__}: {e}")
            logger.debug("Analysis of %d-byte frame dropped: %s", len(frame), e, exc_info=True)
            return None
