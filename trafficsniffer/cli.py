"""
Command-line entry point.

Live capture on a TUN device:
    trafficsniffer -i tun0 --db packets.sqlite

Replay a capture file:
    trafficsniffer --replay traffic.pcap --forward forwarded.pcap --export-json out.json
"""

from __future__ import annotations

import argparse
import logging
import sys

from trafficsniffer.core.errors import CaptureError
from trafficsniffer.core.interface import DEFAULT_MTU, PcapReplayInterface, TunInterface
from trafficsniffer.core.pipeline import PipelineConfig, PipelineCoordinator
from trafficsniffer.core.store import MemoryStore, SqliteStore
from trafficsniffer.exporters import to_json

logger = logging.getLogger("trafficsniffer")


def setup_logging(level: int = logging.INFO) -> logging.Logger:
    """Attach a console handler to the package logger."""
    root = logging.getLogger("trafficsniffer")
    root.setLevel(level)
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setLevel(level)
        handler.setFormatter(logging.Formatter('%(asctime)s [%(levelname)s] %(name)s: %(message)s'))
        root.addHandler(handler)
    return root


def build_argparser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog='trafficsniffer',
        description='Inline traffic inspection: forward frames and scan plaintext payloads for leaked secrets',
    )
    source = p.add_mutually_exclusive_group()
    source.add_argument('-i', '--interface', default='tun0', help='TUN interface to capture on (default: tun0)')
    source.add_argument('--replay', metavar='PCAP', help='Replay a pcap/pcapng file instead of live capture')
    p.add_argument('--forward', metavar='PCAP', help='With --replay: write forwarded frames to this pcap file')
    p.add_argument('--mtu', type=int, default=DEFAULT_MTU, help=f'Maximum frame size for live capture (default: {DEFAULT_MTU})')
    p.add_argument('--db', metavar='PATH', help='Store records in this SQLite database (default: in memory)')
    p.add_argument('--workers', type=int, default=4, help='Analysis worker threads (default: 4)')
    p.add_argument('--max-pending', type=int, default=1024, help='Maximum analyses in flight (default: 1024)')
    p.add_argument('--idle-wait', type=float, default=0.01, help='Seconds to wait after an empty read (default: 0.01)')
    p.add_argument('--export-json', metavar='PATH', help='Export stored records to JSON on exit')
    p.add_argument('-v', '--verbose', action='store_true', help='Enable debug logging')
    return p


def _log_findings(packet, findings) -> None:
    for finding in findings:
        logger.warning("%s %s [%s] %s", finding.severity.value, finding.type.value,
                       packet.endpoints, finding.evidence)


def _print_summary(coordinator: PipelineCoordinator, store: MemoryStore | SqliteStore) -> None:
    stats = coordinator.stats
    print(f"Frames forwarded:  {stats['frames_forwarded']}")
    print(f"Packets analyzed:  {stats['packets_parsed']}")
    print(f"Frames skipped:    {stats['frames_skipped']}")
    print(f"Findings:          {stats['findings']}")

    traffic = store.statistics()
    print(f"Unencrypted:       {traffic.unencrypted_packets}/{traffic.total_packets}")
    print(f"Vulnerable:        {traffic.vulnerable_packets}")
    print(f"HTTP / HTTPS:      {traffic.http_requests} / {traffic.https_requests}")
    print(f"Encryption rate:   {traffic.encryption_rate}%")


def main(argv: list[str] | None = None) -> int:
    args = build_argparser().parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.INFO)

    if args.forward and not args.replay:
        logger.error("--forward requires --replay")
        return 2

    config = PipelineConfig(
        max_workers=args.workers,
        max_pending=args.max_pending,
        idle_wait=args.idle_wait,
    )
    try:
        config.validate()
        if args.replay:
            interface = PcapReplayInterface(args.replay, forward_path=args.forward)
        else:
            interface = TunInterface(args.interface, mtu=args.mtu)
    except ValueError as e:
        logger.error("Invalid configuration: %s", e)
        return 2

    store = SqliteStore(args.db) if args.db else MemoryStore()
    try:
        coordinator = PipelineCoordinator(interface, store, on_findings=_log_findings, config=config)
        try:
            coordinator.run()
        except CaptureError as e:
            logger.error("%s", e)
            return 1

        _print_summary(coordinator, store)

        if args.export_json:
            records = store.records
            to_json(records, args.export_json)
            logger.info("Exported %d records to %s", len(records), args.export_json)
    finally:
        if isinstance(store, SqliteStore):
            store.close()

    return 0 if coordinator.error is None else 1


if __name__ == '__main__':
    sys.exit(main())
