"""
Storage module exports.
"""

from stepwright.storage.store import ModelConfigStore, TestCaseStore

__all__ = [
    "TestCaseStore",
    "ModelConfigStore",
]
