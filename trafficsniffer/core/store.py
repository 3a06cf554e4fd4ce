"""
Result sinks.

The pipeline writes one PacketRecord per analyzed packet to a sink handed to
it at construction time. Sinks must accept unordered, concurrent
single-record writes; both stores here serialize writes with a lock.
"""

from __future__ import annotations

import sqlite3
import threading
from dataclasses import dataclass, fields
from pathlib import Path
from typing import TYPE_CHECKING, Iterable, Protocol as TypingProtocol

if TYPE_CHECKING:
    from trafficsniffer.core.packet import ParsedPacket
    from trafficsniffer.security.rules import Finding


@dataclass(frozen=True, slots=True)
class PacketRecord:
    """Stored summary of one analyzed packet."""
    timestamp: int
    protocol: str
    source_addr: str
    dest_addr: str
    source_port: int
    dest_port: int
    payload: bytes
    is_encrypted: bool
    vulnerability_count: int

    @classmethod
    def from_packet(cls, packet: ParsedPacket, findings: list[Finding]) -> PacketRecord:
        return cls(
            timestamp=packet.timestamp,
            protocol=packet.protocol.value,
            source_addr=packet.source_addr,
            dest_addr=packet.dest_addr,
            source_port=packet.source_port,
            dest_port=packet.dest_port,
            payload=packet.payload,
            is_encrypted=packet.is_encrypted,
            vulnerability_count=len(findings),
        )

    def to_dict(self) -> dict:
        result = {f.name: getattr(self, f.name) for f in fields(self)}
        result['payload'] = self.payload.hex()
        return result


@dataclass(frozen=True)
class TrafficStatistics:
    """Aggregate counters over the stored records."""
    total_packets: int = 0
    unencrypted_packets: int = 0
    vulnerable_packets: int = 0
    http_requests: int = 0
    https_requests: int = 0
    encryption_rate: int = 100

    @classmethod
    def from_counts(cls, total: int, unencrypted: int, vulnerable: int,
                    http: int, https: int) -> TrafficStatistics:
        rate = (total - unencrypted) * 100 // total if total > 0 else 100
        return cls(
            total_packets=total,
            unencrypted_packets=unencrypted,
            vulnerable_packets=vulnerable,
            http_requests=http,
            https_requests=https,
            encryption_rate=rate,
        )


class ResultSink(TypingProtocol):
    """Anything that accepts analyzed packet records."""

    def store(self, record: PacketRecord) -> None:
        ...


class MemoryStore:
    """Thread-safe in-memory record list."""

    def __init__(self):
        self._records: list[PacketRecord] = []
        self._lock = threading.Lock()

    def store(self, record: PacketRecord) -> None:
        with self._lock:
            self._records.append(record)

    @property
    def records(self) -> list[PacketRecord]:
        with self._lock:
            return list(self._records)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def clear(self) -> None:
        with self._lock:
            self._records.clear()

    def statistics(self) -> TrafficStatistics:
        records = self.records
        return TrafficStatistics.from_counts(
            total=len(records),
            unencrypted=sum(1 for r in records if not r.is_encrypted),
            vulnerable=sum(1 for r in records if r.vulnerability_count > 0),
            http=sum(1 for r in records if r.protocol == "HTTP"),
            https=sum(1 for r in records if r.protocol == "HTTPS"),
        )


_COLUMNS = ('timestamp', 'protocol', 'source_addr', 'dest_addr', 'source_port',
            'dest_port', 'payload', 'is_encrypted', 'vulnerability_count')


class SqliteStore:
    """
    SQLite-backed record store.

    One connection is shared between threads and guarded by a lock.

    Args:
        path: Database file path, or ":memory:" (default)

    Examples:
        >>> with SqliteStore('packets.sqlite') as store:
        ...     coordinator = PipelineCoordinator(interface, store)
        ...     ...
        ...     print(store.statistics())
    """

    def __init__(self, path: str | Path = ":memory:"):
        self.path = str(path)
        self._lock = threading.Lock()
        self._con = sqlite3.connect(self.path, check_same_thread=False)
        with self._lock:
            self._con.execute("""
            CREATE TABLE IF NOT EXISTS packets (
              id INTEGER PRIMARY KEY AUTOINCREMENT,
              timestamp INTEGER NOT NULL,
              protocol TEXT NOT NULL,
              source_addr TEXT NOT NULL,
              dest_addr TEXT NOT NULL,
              source_port INTEGER NOT NULL,
              dest_port INTEGER NOT NULL,
              payload BLOB NOT NULL,
              is_encrypted INTEGER NOT NULL,
              vulnerability_count INTEGER NOT NULL
            )
            """)
            self._con.execute(
                "CREATE INDEX IF NOT EXISTS packets_timestamp ON packets(timestamp)"
            )
            self._con.commit()

    def __enter__(self) -> SqliteStore:
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def close(self) -> None:
        with self._lock:
            self._con.close()

    def store(self, record: PacketRecord) -> None:
        self.store_many([record])

    def store_many(self, records: Iterable[PacketRecord]) -> None:
        rows = [
            (r.timestamp, r.protocol, r.source_addr, r.dest_addr, r.source_port,
             r.dest_port, r.payload, int(r.is_encrypted), r.vulnerability_count)
            for r in records
        ]
        with self._lock:
            self._con.executemany(
                f"INSERT INTO packets({', '.join(_COLUMNS)}) VALUES(?,?,?,?,?,?,?,?,?)",
                rows,
            )
            self._con.commit()

    def _select(self, where: str = "", params: tuple = (), limit: int | None = None) -> list[PacketRecord]:
        sql = f"SELECT {', '.join(_COLUMNS)} FROM packets"
        if where:
            sql += f" WHERE {where}"
        sql += " ORDER BY timestamp DESC, id DESC"
        if limit is not None:
            sql += " LIMIT ?"
            params = params + (limit,)
        with self._lock:
            rows = self._con.execute(sql, params).fetchall()
        return [_row_to_record(row) for row in rows]

    def _count(self, where: str = "") -> int:
        sql = "SELECT COUNT(*) FROM packets"
        if where:
            sql += f" WHERE {where}"
        with self._lock:
            return self._con.execute(sql).fetchone()[0]

    @property
    def records(self) -> list[PacketRecord]:
        """All stored records, newest first."""
        return self._select()

    def recent_packets(self, limit: int | None = 100) -> list[PacketRecord]:
        return self._select(limit=limit)

    def unencrypted_packets(self) -> list[PacketRecord]:
        return self._select("is_encrypted = 0")

    def vulnerable_packets(self) -> list[PacketRecord]:
        return self._select("vulnerability_count > 0")

    def delete_older_than(self, cutoff_ms: int) -> int:
        """Delete records captured before ``cutoff_ms``; returns the number removed."""
        with self._lock:
            cur = self._con.execute("DELETE FROM packets WHERE timestamp < ?", (cutoff_ms,))
            self._con.commit()
            return cur.rowcount

    def total_count(self) -> int:
        return self._count()

    def unencrypted_count(self) -> int:
        return self._count("is_encrypted = 0")

    def vulnerable_count(self) -> int:
        return self._count("vulnerability_count > 0")

    def statistics(self) -> TrafficStatistics:
        return TrafficStatistics.from_counts(
            total=self.total_count(),
            unencrypted=self.unencrypted_count(),
            vulnerable=self.vulnerable_count(),
            http=self._count("protocol = 'HTTP'"),
            https=self._count("protocol = 'HTTPS'"),
        )


def _row_to_record(row: tuple) -> PacketRecord:
    (timestamp, protocol, source_addr, dest_addr, source_port,
     dest_port, payload, is_encrypted, vulnerability_count) = row
    return PacketRecord(
        timestamp=timestamp,
        protocol=protocol,
        source_addr=source_addr,
        dest_addr=dest_addr,
        source_port=source_port,
        dest_port=dest_port,
        payload=bytes(payload),
        is_encrypted=bool(is_encrypted),
        vulnerability_count=vulnerability_count,
    )
