"""
Vulnerability types and the ordered scanning rule table.

Each ScanRule pairs a compiled pattern with the finding it produces. Rules
are evaluated in table order; ``MatchMode.EACH`` rules emit one finding per
match, ``MatchMode.ANY`` rules emit a single finding when the pattern
matches anywhere in the payload text.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable


class VulnerabilityType(Enum):
    UNENCRYPTED_CREDENTIALS = "UNENCRYPTED_CREDENTIALS"
    PLAINTEXT_API_KEY = "PLAINTEXT_API_KEY"
    SENSITIVE_DATA_EXPOSURE = "SENSITIVE_DATA_EXPOSURE"
    WEAK_ENCRYPTION = "WEAK_ENCRYPTION"
    MISSING_CERTIFICATE_VALIDATION = "MISSING_CERTIFICATE_VALIDATION"
    INSECURE_HTTP = "INSECURE_HTTP"


class Severity(Enum):
    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class MatchMode(Enum):
    EACH = "each"
    ANY = "any"


@dataclass(frozen=True, slots=True)
class Finding:
    """One vulnerability observed in a single packet."""
    type: VulnerabilityType
    severity: Severity
    description: str
    evidence: str
    recommendation: str

    def to_dict(self) -> dict:
        return {
            'type': self.type.value,
            'severity': self.severity.value,
            'description': self.description,
            'evidence': self.evidence,
            'recommendation': self.recommendation,
        }


def credential_evidence(match: re.Match) -> str:
    """First 50 characters of the whole match."""
    return match.group(0)[:50] + "..."


def key_evidence(match: re.Match) -> str:
    """First 20 characters of the captured token."""
    return f"Key: {match.group(1)[:20]}..."


def pattern_evidence(match: re.Match) -> str:
    return "Pattern matched in payload"


@dataclass(frozen=True, slots=True)
class ScanRule:
    """
    A declarative scanning rule.

    Attributes:
        name: Short identifier used in logs and tests
        kind: Vulnerability type of the produced findings
        pattern: Compiled regular expression run over the payload text
        severity: Severity of the produced findings
        description: Finding description
        recommendation: Finding recommendation
        evidence: Builds the evidence string from a match
        mode: EACH (one finding per match) or ANY (one finding if any match)
    """
    name: str
    kind: VulnerabilityType
    pattern: re.Pattern
    severity: Severity
    description: str
    recommendation: str
    evidence: Callable[[re.Match], str]
    mode: MatchMode = MatchMode.EACH

    def findings(self, text: str) -> list[Finding]:
        """Evaluate this rule against decoded payload text."""
        if self.mode is MatchMode.ANY:
            match = self.pattern.search(text)
            return [self._finding(match)] if match else []
        return [self._finding(m) for m in self.pattern.finditer(text)]

    def _finding(self, match: re.Match) -> Finding:
        return Finding(
            type=self.kind,
            severity=self.severity,
            description=self.description,
            evidence=self.evidence(match),
            recommendation=self.recommendation,
        )


def _credential_rule(name: str, regex: str) -> ScanRule:
    return ScanRule(
        name=name,
        kind=VulnerabilityType.UNENCRYPTED_CREDENTIALS,
        pattern=re.compile(regex, re.IGNORECASE | re.ASCII),
        severity=Severity.CRITICAL,
        description="Credentials transmitted in plaintext",
        recommendation="Always use HTTPS for authentication endpoints",
        evidence=credential_evidence,
    )


def _api_key_rule(name: str, regex: str) -> ScanRule:
    return ScanRule(
        name=name,
        kind=VulnerabilityType.PLAINTEXT_API_KEY,
        pattern=re.compile(regex, re.IGNORECASE | re.ASCII),
        severity=Severity.CRITICAL,
        description="API key exposed in plaintext HTTP request",
        recommendation="Use HTTPS and consider OAuth 2.0 or API Gateway",
        evidence=key_evidence,
    )


def _sensitive_rule(name: str, regex: str, flags: int = 0) -> ScanRule:
    return ScanRule(
        name=name,
        kind=VulnerabilityType.SENSITIVE_DATA_EXPOSURE,
        pattern=re.compile(regex, flags),
        severity=Severity.HIGH,
        description="Sensitive data transmitted without encryption",
        recommendation="Encrypt all sensitive data and use HTTPS",
        evidence=pattern_evidence,
        mode=MatchMode.ANY,
    )


CREDENTIAL_RULES: tuple[ScanRule, ...] = (
    _credential_rule('password', r"""password["'\s:=]+([^"'\s&]+)"""),
    _credential_rule('passwd', r"""passwd["'\s:=]+([^"'\s&]+)"""),
    _credential_rule('pwd', r"""pwd["'\s:=]+([^"'\s&]+)"""),
    _credential_rule('username', r"""username["'\s:=]+([^"'\s&]+)"""),
    _credential_rule('email', r"""email["'\s:=]+([^@\s]+@[^\s"'&]+)"""),
)

API_KEY_RULES: tuple[ScanRule, ...] = (
    _api_key_rule('api_key', r"""api[_-]?key["'\s:=]+([a-zA-Z0-9_-]{20,})"""),
    _api_key_rule('apikey', r"""apikey["'\s:=]+([a-zA-Z0-9_-]{20,})"""),
    _api_key_rule('access_token', r"""access[_-]?token["'\s:=]+([a-zA-Z0-9_-]{20,})"""),
    _api_key_rule('bearer', r"""bearer\s+([a-zA-Z0-9_-]{20,})"""),
    _api_key_rule('authorization', r"""authorization["'\s:]+([a-zA-Z0-9+/=]{20,})"""),
)

SENSITIVE_DATA_RULES: tuple[ScanRule, ...] = (
    _sensitive_rule('card_number', r"\b[0-9]{4}[\s-]?[0-9]{4}[\s-]?[0-9]{4}[\s-]?[0-9]{4}\b", re.ASCII),
    _sensitive_rule('ssn', r"\b[0-9]{3}-[0-9]{2}-[0-9]{4}\b", re.ASCII),
    _sensitive_rule('email_address', r"\b[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}\b",
                    re.IGNORECASE | re.ASCII),
)

DEFAULT_RULES: tuple[ScanRule, ...] = CREDENTIAL_RULES + API_KEY_RULES + SENSITIVE_DATA_RULES
