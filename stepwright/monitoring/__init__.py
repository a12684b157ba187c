"""
Monitoring module exports.
"""

from stepwright.monitoring.logger import (
    get_logger,
    log_performance_metric,
    log_test_event,
    setup_logging,
    JSONFormatter,
    SanitizingHandler,
)

from stepwright.monitoring.reporter import (
    HTMLReporter,
    default_report_path,
)

__all__ = [
    # Logger
    "setup_logging",
    "get_logger",
    "log_test_event",
    "log_performance_metric",
    "JSONFormatter",
    "SanitizingHandler",

    # Reporter
    "HTMLReporter",
    "default_report_path",
]
