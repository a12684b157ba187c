"""
Data sanitization for credential protection.

Model credentials travel through configuration documents, the per-run model
environment and log records. The sanitizer detects and redacts them before
they reach a console, a log file or a report.
"""

import hashlib
import logging
import re
from copy import deepcopy
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, List, Optional, Pattern

logger = logging.getLogger(__name__)


class RedactionMethod(Enum):
    """Methods for redacting sensitive data."""
    MASK = auto()          # Replace with asterisks
    HASH = auto()          # Replace with hash
    PARTIAL = auto()       # Show first/last few chars
    PLACEHOLDER = auto()   # Replace with placeholder text


@dataclass
class SensitiveDataPattern:
    """Pattern for identifying sensitive data."""

    name: str
    pattern: Pattern[str]
    redaction_method: RedactionMethod = RedactionMethod.PLACEHOLDER
    placeholder: str = "[REDACTED]"
    partial_chars: int = 4  # For PARTIAL method
    group: int = 0  # Regex group that holds the secret
    description: str = ""
    enabled: bool = True

    def matches(self, text: str) -> List[re.Match]:
        """Find all matches in text."""
        if not self.enabled:
            return []
        return list(self.pattern.finditer(text))


@dataclass
class SanitizationRule:
    """Rule for sanitizing values stored under specific keys."""

    name: str
    patterns: List[SensitiveDataPattern]
    apply_to_keys: List[str] = field(default_factory=list)
    mask_whole_value: bool = False
    enabled: bool = True

    def key_matches(self, key: Optional[str]) -> bool:
        if not key:
            return False
        normalized = key.lower().replace("-", "_")
        return any(k in normalized for k in self.apply_to_keys)


class DataSanitizer:
    """Sanitizer for credentials in strings, dictionaries and log records."""

    def __init__(self):
        """Initialize with default patterns."""
        self.patterns: List[SensitiveDataPattern] = []
        self.rules: List[SanitizationRule] = []
        self._setup_default_patterns()
        self._setup_default_rules()

    def _setup_default_patterns(self) -> None:
        """Set up default credential patterns."""
        self.patterns.extend([
            SensitiveDataPattern(
                name="openai_key",
                pattern=re.compile(r'\bsk-[A-Za-z0-9_\-]{16,}'),
                redaction_method=RedactionMethod.PARTIAL,
                partial_chars=3,
                description="OpenAI-style sk- API keys"
            ),
            SensitiveDataPattern(
                name="api_key_assignment",
                pattern=re.compile(
                    r'(?:api[_-]?key|apikey|access[_-]?token|secret)["\']?\s*[:=]\s*["\']?([^"\'\s,}]+)',
                    re.IGNORECASE,
                ),
                group=1,
                description="API keys written as key=value or \"key\": \"value\""
            ),
            SensitiveDataPattern(
                name="bearer_token",
                pattern=re.compile(r'Bearer\s+([A-Za-z0-9\-._~+/]+=*)', re.IGNORECASE),
                group=1,
                description="Bearer authentication tokens"
            ),
            SensitiveDataPattern(
                name="password_field",
                pattern=re.compile(
                    r'(?:password|passwd|pwd)["\']?\s*[:=]\s*["\']?([^"\'\s,}]+)',
                    re.IGNORECASE,
                ),
                group=1,
                placeholder="[PASSWORD]",
                description="Password fields"
            ),
            SensitiveDataPattern(
                name="jwt_token",
                pattern=re.compile(r'eyJ[A-Za-z0-9_-]+\.eyJ[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+'),
                redaction_method=RedactionMethod.HASH,
                description="JWT tokens"
            ),
        ])

    def _setup_default_rules(self) -> None:
        """Set up default sanitization rules."""
        self.rules.append(
            SanitizationRule(
                name="credential_keys",
                patterns=[],
                apply_to_keys=[
                    "api_key", "apikey", "token", "secret", "password",
                    "authorization",
                ],
                mask_whole_value=True,
            )
        )
        self.rules.append(
            SanitizationRule(
                name="embedded_credentials",
                patterns=list(self.patterns),
            )
        )

    def add_pattern(self, pattern: SensitiveDataPattern) -> None:
        """Add a custom pattern."""
        self.patterns.append(pattern)
        for rule in self.rules:
            if not rule.mask_whole_value:
                rule.patterns.append(pattern)

    def sanitize_string(
        self,
        text: str,
        patterns: Optional[List[SensitiveDataPattern]] = None
    ) -> str:
        """
        Sanitize a string using specified patterns.

        Args:
            text: Text to sanitize
            patterns: Patterns to use (defaults to all enabled patterns)

        Returns:
            Sanitized text
        """
        if not text:
            return text

        patterns = patterns or [p for p in self.patterns if p.enabled]
        result = text
        for pattern in patterns:
            # Process from the end so earlier spans keep their offsets
            for match in reversed(pattern.matches(result)):
                result = self._apply_redaction(result, match, pattern)
        return result

    def _apply_redaction(
        self,
        text: str,
        match: re.Match,
        pattern: SensitiveDataPattern
    ) -> str:
        """Apply redaction based on method."""
        start, end = match.span(pattern.group)
        matched_text = match.group(pattern.group)
        replacement = self.redact_value(matched_text, pattern)
        return text[:start] + replacement + text[end:]

    @staticmethod
    def redact_value(value: str, pattern: SensitiveDataPattern) -> str:
        if pattern.redaction_method == RedactionMethod.MASK:
            return "*" * len(value)
        if pattern.redaction_method == RedactionMethod.HASH:
            hash_val = hashlib.sha256(value.encode()).hexdigest()[:8]
            return f"[HASH:{hash_val}]"
        if pattern.redaction_method == RedactionMethod.PARTIAL:
            return mask_sensitive_data(value, pattern.partial_chars, pattern.partial_chars)
        return pattern.placeholder

    def sanitize_dict(
        self,
        data: Dict[str, Any],
        max_depth: int = 10
    ) -> Dict[str, Any]:
        """
        Sanitize a dictionary recursively.

        Values stored under credential-like keys are masked entirely; other
        string values are scanned for embedded credentials.

        Args:
            data: Dictionary to sanitize
            max_depth: Maximum recursion depth

        Returns:
            Sanitized dictionary (copy)
        """
        if max_depth <= 0:
            logger.warning("Max recursion depth reached in sanitize_dict")
            return data

        rules = [r for r in self.rules if r.enabled]
        result = deepcopy(data)

        def _sanitize_value(value: Any, key: Optional[str] = None) -> Any:
            if isinstance(value, str):
                if any(r.mask_whole_value and r.key_matches(key) for r in rules):
                    return mask_sensitive_data(value, 3, 2) if value else value
                applicable = [
                    p for r in rules if not r.mask_whole_value for p in r.patterns
                ]
                return self.sanitize_string(value, applicable) if applicable else value
            if isinstance(value, dict):
                return self.sanitize_dict(value, max_depth - 1)
            if isinstance(value, list):
                return [_sanitize_value(item) for item in value]
            return value

        for key, value in result.items():
            result[key] = _sanitize_value(value, key)

        return result

    def sanitize_log_record(self, record: logging.LogRecord) -> logging.LogRecord:
        """
        Sanitize a log record's message and arguments in place.

        Args:
            record: Log record to sanitize

        Returns:
            Sanitized log record
        """
        if hasattr(record, 'msg'):
            record.msg = self.sanitize_string(str(record.msg))

        if hasattr(record, 'args') and record.args:
            if isinstance(record.args, dict):
                record.args = self.sanitize_dict(record.args)
            else:
                record.args = tuple(
                    self.sanitize_string(arg) if isinstance(arg, str) else arg
                    for arg in record.args
                )

        return record


# Convenience functions
_default_sanitizer = DataSanitizer()

def sanitize_string(text: str) -> str:
    """Sanitize a string using default patterns."""
    return _default_sanitizer.sanitize_string(text)

def sanitize_dict(data: Dict[str, Any]) -> Dict[str, Any]:
    """Sanitize a dictionary using default rules."""
    return _default_sanitizer.sanitize_dict(data)

def mask_sensitive_data(
    text: str,
    start_chars: int = 4,
    end_chars: int = 4
) -> str:
    """
    Mask sensitive data showing only start/end characters.

    Args:
        text: Text to mask
        start_chars: Number of characters to show at start
        end_chars: Number of characters to show at end

    Returns:
        Masked text
    """
    if len(text) <= start_chars + end_chars:
        return "*" * len(text)

    return (
        text[:start_chars] +
        "*" * (len(text) - start_chars - end_chars) +
        text[-end_chars:]
    )
