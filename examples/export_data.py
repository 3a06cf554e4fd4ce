"""
Export example.

Demonstrates storing records in SQLite and exporting them to different formats:
- DataFrame (pandas)
- CSV
- JSON
"""

from trafficsniffer import PcapReplayInterface, PipelineCoordinator, SqliteStore, to_csv, to_dataframe, to_json

with SqliteStore('packets.sqlite') as store:
    PipelineCoordinator(PcapReplayInterface('test/multi.pcap'), store).run()

    records = store.recent_packets(limit=None)
    print(f"Total records: {len(records)}")
    print()

    # === Export to DataFrame ===
    df = to_dataframe(records, include_payload=False)
    print("DataFrame export:")
    print(df.head())
    print()

    print("Protocols:")
    print(df['protocol'].value_counts())
    print()

    # === Vulnerable packets only ===
    vulnerable = to_dataframe(store.vulnerable_packets(), include_payload=False)
    print("Vulnerable packets:")
    print(vulnerable[['timestamp', 'source_addr', 'dest_addr', 'dest_port', 'vulnerability_count']])
    print()

    # === Export to CSV / JSON ===
    to_csv(records, 'packets.csv', include_payload=False)
    to_json(store.vulnerable_packets(), 'vulnerable.json')
    print("Wrote packets.csv and vulnerable.json")

    # Keep the last hour only
    newest = records[0].timestamp if records else 0
    removed = store.delete_older_than(newest - 3600 * 1000)
    print(f"Pruned {removed} records older than one hour")
