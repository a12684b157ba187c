"""
Security components for Stepwright.

Credential redaction for logs, console output and reports.
"""

from .sanitizer import (
    DataSanitizer,
    SensitiveDataPattern,
    SanitizationRule,
    RedactionMethod,
    sanitize_dict,
    sanitize_string,
    mask_sensitive_data
)

__all__ = [
    "DataSanitizer",
    "SensitiveDataPattern",
    "SanitizationRule",
    "RedactionMethod",
    "sanitize_dict",
    "sanitize_string",
    "mask_sensitive_data"
]
