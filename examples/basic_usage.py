"""
Basic trafficsniffer usage example.

Demonstrates:
- Replaying a pcap file through the pipeline
- Forwarding frames to a raw-IP pcap
- Reading findings as they are produced
- Printing traffic statistics
"""

from trafficsniffer import MemoryStore, PcapReplayInterface, PipelineCoordinator


def print_findings(packet, findings):
    print(f"{packet.protocol.value} {packet.endpoints}")
    for finding in findings:
        print(f"  [{finding.severity.value}] {finding.type.value}: {finding.evidence}")


store = MemoryStore()
coordinator = PipelineCoordinator(
    PcapReplayInterface('test/single.pcap', forward_path='forwarded.pcap'),
    store,
    on_findings=print_findings,
    max_workers=4,
)
coordinator.run()

stats = store.statistics()
print()
print(f"Total packets: {stats.total_packets}")
print(f"Unencrypted:   {stats.unencrypted_packets}")
print(f"Vulnerable:    {stats.vulnerable_packets}")
print(f"HTTP/HTTPS:    {stats.http_requests}/{stats.https_requests}")
print(f"Encryption:    {stats.encryption_rate}%")

print()
print("Pipeline counters:")
for key, value in coordinator.stats.items():
    if key != 'errors':
        print(f"  {key}: {value}")
