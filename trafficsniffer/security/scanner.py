"""
Plaintext payload scanner.

Only packets classified as HTTP are inspected. Encrypted and non-HTTP
payloads are never decoded.
"""

from __future__ import annotations

from typing import Iterable

from trafficsniffer.core.packet import ParsedPacket, Protocol
from trafficsniffer.security.rules import (
    DEFAULT_RULES,
    Finding,
    ScanRule,
    Severity,
    VulnerabilityType,
)


def insecure_http_finding(packet: ParsedPacket) -> Finding:
    return Finding(
        type=VulnerabilityType.INSECURE_HTTP,
        severity=Severity.HIGH,
        description="Unencrypted HTTP traffic detected",
        evidence=packet.endpoints,
        recommendation="Use HTTPS with proper certificate validation",
    )


class VulnerabilityScanner:
    """
    Runs an ordered rule table over decoded HTTP payloads.

    Args:
        rules: Ordered scanning rules (default: DEFAULT_RULES)

    Examples:
        >>> scanner = VulnerabilityScanner()
        >>> for finding in scanner.analyze(packet):
        ...     print(finding.severity.value, finding.type.value, finding.evidence)
    """

    def __init__(self, rules: Iterable[ScanRule] | None = None):
        self.rules: tuple[ScanRule, ...] = tuple(DEFAULT_RULES if rules is None else rules)

    def analyze(self, packet: ParsedPacket) -> list[Finding]:
        """
        Produce the ordered findings for one packet.

        The first finding of an HTTP packet is always INSECURE_HTTP, followed
        by rule findings in table order, then match order.
        """
        if packet.protocol is not Protocol.HTTP:
            return []

        findings = [insecure_http_finding(packet)]
        text = packet.payload.decode('utf-8', errors='replace')
        for rule in self.rules:
            findings.extend(rule.findings(text))
        return findings


_default_scanner = VulnerabilityScanner()


def analyze(packet: ParsedPacket) -> list[Finding]:
    """Analyze a packet with the default rule table."""
    return _default_scanner.analyze(packet)
