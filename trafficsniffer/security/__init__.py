"""Vulnerability rules and scanner."""

from trafficsniffer.security.rules import (
    Finding,
    Severity,
    VulnerabilityType,
    MatchMode,
    ScanRule,
    CREDENTIAL_RULES,
    API_KEY_RULES,
    SENSITIVE_DATA_RULES,
    DEFAULT_RULES,
)
from trafficsniffer.security.scanner import VulnerabilityScanner, analyze

__all__ = [
    'Finding',
    'Severity',
    'VulnerabilityType',
    'MatchMode',
    'ScanRule',
    'CREDENTIAL_RULES',
    'API_KEY_RULES',
    'SENSITIVE_DATA_RULES',
    'DEFAULT_RULES',
    'VulnerabilityScanner',
    'analyze',
]
