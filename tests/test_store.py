"""Test the result stores."""

import threading

import pytest

from trafficsniffer.core.packet import ParsedPacket, Protocol
from trafficsniffer.core.store import MemoryStore, PacketRecord, SqliteStore, TrafficStatistics
from trafficsniffer.security.scanner import analyze


def make_record(timestamp=1000, protocol='TCP', is_encrypted=False, vulnerability_count=0,
                payload=b'\x00\x01', dest_port=8080):
    return PacketRecord(
        timestamp=timestamp,
        protocol=protocol,
        source_addr='192.168.1.10',
        dest_addr='10.0.0.1',
        source_port=40000,
        dest_port=dest_port,
        payload=payload,
        is_encrypted=is_encrypted,
        vulnerability_count=vulnerability_count,
    )


def sample_records():
    return [
        make_record(timestamp=1000, protocol='HTTP', vulnerability_count=3, dest_port=80),
        make_record(timestamp=2000, protocol='HTTPS', is_encrypted=True, dest_port=443),
        make_record(timestamp=3000, protocol='HTTP', vulnerability_count=1, dest_port=80),
        make_record(timestamp=4000, protocol='DNS', dest_port=53),
    ]


@pytest.fixture(params=['memory', 'sqlite'])
def store(request):
    if request.param == 'memory':
        yield MemoryStore()
    else:
        with SqliteStore() as s:
            yield s


def test_record_from_packet():
    packet = ParsedPacket(
        timestamp=42,
        protocol=Protocol.HTTP,
        source_addr='1.2.3.4',
        dest_addr='5.6.7.8',
        source_port=1111,
        dest_port=80,
        payload=b'password=x',
    )
    record = PacketRecord.from_packet(packet, analyze(packet))

    assert record.protocol == 'HTTP'
    assert record.timestamp == 42
    assert record.vulnerability_count == 2
    assert record.payload == b'password=x'
    assert record.to_dict()['payload'] == b'password=x'.hex()


def test_statistics(store):
    for record in sample_records():
        store.store(record)

    stats = store.statistics()
    assert stats == TrafficStatistics(
        total_packets=4,
        unencrypted_packets=3,
        vulnerable_packets=2,
        http_requests=2,
        https_requests=1,
        encryption_rate=25,
    )


def test_empty_statistics(store):
    stats = store.statistics()
    assert stats.total_packets == 0
    assert stats.encryption_rate == 100


def test_encryption_rate_truncates():
    assert TrafficStatistics.from_counts(3, 2, 0, 0, 0).encryption_rate == 33


def test_concurrent_writes(store):
    """Test single-record writes from many threads."""
    def writer(base):
        for i in range(50):
            store.store(make_record(timestamp=base + i))

    threads = [threading.Thread(target=writer, args=(n * 1000,)) for n in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert store.statistics().total_packets == 400


def test_memory_store_records_and_clear():
    store = MemoryStore()
    store.store(make_record())
    assert len(store) == 1
    store.clear()
    assert store.records == []


def test_sqlite_queries():
    with SqliteStore() as store:
        store.store_many(sample_records())

        assert [r.timestamp for r in store.recent_packets(limit=2)] == [4000, 3000]
        assert [r.timestamp for r in store.recent_packets(limit=None)] == [4000, 3000, 2000, 1000]
        assert [r.timestamp for r in store.records] == [4000, 3000, 2000, 1000]
        assert [r.timestamp for r in store.unencrypted_packets()] == [4000, 3000, 1000]
        assert [r.timestamp for r in store.vulnerable_packets()] == [3000, 1000]
        assert store.total_count() == 4
        assert store.unencrypted_count() == 3
        assert store.vulnerable_count() == 2


def test_sqlite_round_trip_fields():
    with SqliteStore() as store:
        expected = make_record(payload=b'\xff\x00binary', is_encrypted=True, vulnerability_count=7)
        store.store(expected)
        assert store.records == [expected]


def test_sqlite_delete_older_than():
    with SqliteStore() as store:
        store.store_many(sample_records())
        assert store.delete_older_than(2500) == 2
        assert [r.timestamp for r in store.records] == [4000, 3000]


def test_sqlite_persists_to_file(tmp_path):
    path = tmp_path / 'packets.sqlite'
    with SqliteStore(path) as store:
        store.store(make_record(timestamp=99))

    with SqliteStore(path) as store:
        assert [r.timestamp for r in store.records] == [99]
