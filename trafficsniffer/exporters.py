"""
Export functionality for packet records and findings.

Provides methods to export stored records to various formats including
DataFrame, CSV, JSON, and dict.

Examples:
    Export to pandas DataFrame:
        >>> from trafficsniffer import SqliteStore, to_dataframe
        >>> store = SqliteStore('packets.sqlite')
        >>> df = to_dataframe(store.vulnerable_packets())
        >>> print(df[['source_addr', 'dest_addr', 'vulnerability_count']])

    Export to CSV:
        >>> from trafficsniffer import to_csv
        >>> to_csv(records, 'packets.csv')

    Export to JSON:
        >>> from trafficsniffer import to_json
        >>> to_json(records, 'packets.json')
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Iterable
import json

if TYPE_CHECKING:
    from trafficsniffer.core.store import PacketRecord
    from trafficsniffer.security.rules import Finding


def to_dict(records: Iterable[PacketRecord], include_payload: bool = True) -> list[dict]:
    """
    Convert records to a list of dictionaries.

    Args:
        records: PacketRecord objects
        include_payload: Whether to include the hex-encoded payload (default: True)

    Returns:
        List of dictionaries, one per record
    """
    result = []
    for record in records:
        row = record.to_dict()
        if not include_payload:
            row.pop('payload', None)
        result.append(row)
    return result


def findings_to_dict(findings: Iterable[Finding]) -> list[dict]:
    """Convert findings to a list of dictionaries."""
    return [f.to_dict() for f in findings]


def to_json(
    records: Iterable[PacketRecord],
    path: str | Path,
    include_payload: bool = True,
    indent: int = 2
) -> None:
    """
    Export records to a JSON file.

    Args:
        records: PacketRecord objects
        path: Output JSON file path
        include_payload: Whether to include the hex-encoded payload (default: True)
        indent: JSON indentation level (default: 2)
    """
    path = Path(path)
    data = to_dict(records, include_payload=include_payload)

    with open(path, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=indent, default=str)


def to_dataframe(records: Iterable[PacketRecord], include_payload: bool = True) -> object:
    """
    Convert records to a pandas DataFrame with one row per record.

    Raises:
        ImportError: If pandas is not installed
    """
    try:
        import pandas as pd
    except ImportError:
        raise ImportError("pandas is required for DataFrame export. Install with: pip install pandas")

    columns = ['timestamp', 'protocol', 'source_addr', 'dest_addr', 'source_port',
               'dest_port', 'payload', 'is_encrypted', 'vulnerability_count']
    if not include_payload:
        columns.remove('payload')

    df = pd.DataFrame(to_dict(records, include_payload=include_payload), columns=columns)
    df['timestamp'] = pd.to_datetime(df['timestamp'], unit='ms', utc=True)
    return df


def to_csv(
    records: Iterable[PacketRecord],
    path: str | Path,
    include_payload: bool = True
) -> None:
    """
    Export records to a CSV file.

    Raises:
        ImportError: If pandas is not installed
    """
    df = to_dataframe(records, include_payload=include_payload)
    df.to_csv(path, index=False)
