"""
Test Fixtures Package

Shared test utilities and helpers for consistent testing across all modules.
"""

from .upstream_factory import FALLBACK, PRIMARY, TERTIARY, FakeClock, RecordingSleep, UpstreamStub

__all__ = ["FALLBACK", "PRIMARY", "TERTIARY", "FakeClock", "RecordingSleep", "UpstreamStub"]
