"""
Frame interfaces: the read/write endpoints the pipeline captures from and
forwards to.

- TunInterface: a Linux TUN device (raw IP frames, no packet info header).
- PcapReplayInterface: replays a pcap/pcapng capture and optionally writes
  the forwarded frames to a raw-IP pcap file.

``read`` returns ``b""`` when no frame is currently available and raises
``EOFError`` once a finite source is exhausted.
"""

from __future__ import annotations

import errno
import logging
import os
import select
import struct
from pathlib import Path
from typing import Any, BinaryIO, Iterator, Protocol

logger = logging.getLogger(__name__)


DEFAULT_MTU = 1500

# Link-layer types (pcap LINKTYPE_* / DLT_* values)
DLT_NULL = 0           # BSD loopback
DLT_EN10MB = 1         # Ethernet
DLT_RAW = 101          # Raw IP
DLT_LOOP = 108         # OpenBSD loopback
DLT_LINUX_SLL = 113    # Linux cooked capture

ETHERTYPE_VLAN = (0x8100, 0x88A8)
SLL_HDR_LEN = 16
NULL_HDR_LEN = 4


class FrameInterface(Protocol):
    """Read/write endpoint owned by the host."""

    def open(self) -> None:
        ...

    def read(self) -> bytes:
        ...

    def write(self, frame: bytes) -> None:
        ...

    def close(self) -> None:
        ...


class TunInterface:
    """
    Linux TUN device.

    Frames read from the device are raw IP datagrams (``IFF_NO_PI``). Reads
    wait at most ``read_timeout`` seconds so that the capture loop can
    observe a stop request between reads.

    Args:
        name: Interface name (e.g. "tun0")
        mtu: Maximum frame size read per call
        read_timeout: Seconds to wait for a frame before returning b""
    """

    TUNSETIFF = 0x400454ca
    IFF_TUN = 0x0001
    IFF_NO_PI = 0x1000
    TUN_DEVICE = '/dev/net/tun'

    def __init__(self, name: str = "tun0", mtu: int = DEFAULT_MTU, read_timeout: float = 0.2):
        if len(name.encode()) > 15:
            raise ValueError(f"TUN interface name too long: {name!r}")
        self.name = name
        self.mtu = mtu
        self.read_timeout = read_timeout
        self._fd: int | None = None

    @property
    def is_open(self) -> bool:
        return self._fd is not None

    def open(self) -> None:
        import fcntl

        ifr = struct.pack('16sH', self.name.encode(), self.IFF_TUN | self.IFF_NO_PI)
        fd = os.open(self.TUN_DEVICE, os.O_RDWR)
        try:
            fcntl.ioctl(fd, self.TUNSETIFF, ifr)
        except OSError:
            os.close(fd)
            raise
        os.set_blocking(fd, False)
        self._fd = fd
        logger.info("Opened TUN interface %s (mtu=%d)", self.name, self.mtu)

    def _require_fd(self) -> int:
        if self._fd is None:
            raise RuntimeError("Interface not opened. Call open() first.")
        return self._fd

    def read(self) -> bytes:
        fd = self._require_fd()
        ready, _, _ = select.select([fd], [], [], self.read_timeout)
        if not ready:
            return b""
        try:
            return os.read(fd, self.mtu)
        except BlockingIOError:
            return b""

    def write(self, frame: bytes) -> None:
        fd = self._require_fd()
        try:
            os.write(fd, frame)
        except OSError as e:
            if e.errno != errno.EAGAIN:
                raise
            # Device queue full: wait for it to drain once, then retry.
            select.select([], [fd], [], self.read_timeout)
            os.write(fd, frame)

    def close(self) -> None:
        if self._fd is not None:
            try:
                os.close(self._fd)
            finally:
                self._fd = None
            logger.info("Closed TUN interface %s", self.name)

    def __enter__(self) -> TunInterface:
        self.open()
        return self

    def __exit__(self, *args) -> None:
        self.close()


def strip_ethernet(buf: bytes) -> bytes:
    """Remove an Ethernet header (and any 802.1Q/802.1ad tags)."""
    if len(buf) < 14:
        return buf
    offset = 12
    etype = struct.unpack_from('!H', buf, offset)[0]
    while etype in ETHERTYPE_VLAN and len(buf) >= offset + 6:
        offset += 4
        etype = struct.unpack_from('!H', buf, offset)[0]
    return buf[offset + 2:]


def strip_link_layer(buf: bytes, datalink: int) -> bytes:
    """
    Return the network-layer datagram carried in a captured frame.

    Unknown link types are returned unchanged.
    """
    if datalink == DLT_EN10MB:
        return strip_ethernet(buf)
    if datalink == DLT_LINUX_SLL:
        return buf[SLL_HDR_LEN:] if len(buf) >= SLL_HDR_LEN else buf
    if datalink in (DLT_NULL, DLT_LOOP):
        return buf[NULL_HDR_LEN:] if len(buf) >= NULL_HDR_LEN else buf
    return buf


class PcapReplayInterface:
    """
    Replays a capture file as a frame source.

    Frames are read with ``dpkt.pcap.UniversalReader`` (pcap and pcapng),
    stripped of their link-layer header, and returned one per ``read``.
    Forwarded frames are written to ``forward_path`` as a raw-IP pcap, or
    discarded when no path is given.

    Args:
        pcap_path: Capture file to replay
        forward_path: Optional pcap file receiving forwarded frames
        snaplen: Snapshot length written to the forward file header

    Examples:
        >>> iface = PcapReplayInterface('traffic.pcap', forward_path='forwarded.pcap')
        >>> coordinator = PipelineCoordinator(iface, MemoryStore())
        >>> coordinator.run()
    """

    def __init__(self, pcap_path: str | Path, forward_path: str | Path | None = None,
                 snaplen: int = 65535):
        self.pcap_path = Path(pcap_path)
        self.forward_path = Path(forward_path) if forward_path is not None else None
        self.snaplen = snaplen
        self._file: BinaryIO | None = None
        self._reader: Any | None = None
        self._frames: Iterator[tuple[float, bytes]] | None = None
        self._forward_file: BinaryIO | None = None
        self._writer: Any | None = None
        self._datalink: int | None = None
        self.frames_read = 0
        self.frames_written = 0

    @property
    def datalink(self) -> int:
        if self._datalink is None:
            raise RuntimeError("Interface not opened. Call open() first.")
        return self._datalink

    def open(self) -> None:
        import dpkt

        if not self.pcap_path.exists():
            raise FileNotFoundError(f"PCAP file not found: {self.pcap_path}")

        f = open(self.pcap_path, 'rb')
        try:
            self._reader = dpkt.pcap.UniversalReader(f)
        except ValueError as e:
            f.close()
            raise ValueError(f"Unknown PCAP format: {e}")
        self._file = f
        self._datalink = self._reader.datalink()
        self._frames = iter(self._reader)

        if self.forward_path is not None:
            try:
                self._forward_file = open(self.forward_path, 'wb')
                self._writer = dpkt.pcap.Writer(self._forward_file, snaplen=self.snaplen,
                                                linktype=DLT_RAW)
            except Exception:
                self.close()
                raise
        logger.info("Replaying %s (datalink=%d)", self.pcap_path, self._datalink)

    def read(self) -> bytes:
        if self._frames is None:
            raise RuntimeError("Interface not opened. Call open() first.")
        try:
            _ts, buf = next(self._frames)
        except StopIteration:
            raise EOFError(f"End of capture: {self.pcap_path}") from None
        self.frames_read += 1
        return bytes(strip_link_layer(buf, self._datalink))

    def write(self, frame: bytes) -> None:
        if self._writer is not None:
            self._writer.writepkt(frame)
        self.frames_written += 1

    def close(self) -> None:
        self._frames = None
        self._reader = None
        if self._writer is not None:
            self._writer.close()
            self._writer = None
        elif self._forward_file is not None:
            self._forward_file.close()
        self._forward_file = None
        if self._file is not None:
            self._file.close()
            self._file = None

    def __enter__(self) -> PcapReplayInterface:
        self.open()
        return self

    def __exit__(self, *args) -> None:
        self.close()
