"""
Stepwright - AI-driven browser test case runner.
"""

__version__ = "0.1.0"
