"""Test the command-line entry point."""

import json

import dpkt

from trafficsniffer.cli import build_argparser, main
from trafficsniffer.core.interface import DLT_RAW
from trafficsniffer.core.store import SqliteStore

from conftest import build_tcp_frame


def write_raw_pcap(path, frames):
    with open(path, 'wb') as f:
        writer = dpkt.pcap.Writer(f, linktype=DLT_RAW)
        for frame in frames:
            writer.writepkt(frame, ts=1700000000.0)


def test_argparser_defaults():
    args = build_argparser().parse_args([])
    assert args.interface == 'tun0'
    assert args.replay is None
    assert args.workers == 4
    assert args.max_pending == 1024


def test_replay_to_json_and_db(tmp_path, capsys):
    src = tmp_path / 'in.pcap'
    write_raw_pcap(src, [
        build_tcp_frame(b'GET /login?pwd=1234 HTTP/1.1', dport=80),
        build_tcp_frame(b'\x16\x03\x01\x00\x05', dport=443),
    ])
    out = tmp_path / 'out.json'
    db = tmp_path / 'packets.sqlite'

    code = main(['--replay', str(src), '--db', str(db), '--export-json', str(out)])

    assert code == 0
    assert 'Encryption rate:   50%' in capsys.readouterr().out
    data = json.loads(out.read_text(encoding='utf-8'))
    assert sorted(row['protocol'] for row in data) == ['HTTP', 'HTTPS']
    with SqliteStore(db) as store:
        assert store.vulnerable_count() == 1


def test_forward_requires_replay(tmp_path):
    assert main(['--forward', str(tmp_path / 'out.pcap')]) == 2


def test_invalid_worker_count(tmp_path):
    src = tmp_path / 'in.pcap'
    write_raw_pcap(src, [])
    assert main(['--replay', str(src), '--workers', '0']) == 2


def test_missing_capture_file(tmp_path):
    assert main(['--replay', str(tmp_path / 'missing.pcap')]) == 1
