"""
Browser automation module exports.
"""

from stepwright.browser.session import BrowserSession, SessionState

__all__ = [
    "BrowserSession",
    "SessionState",
]
