"""
Tests for core.time — Clock protocol.
"""

import pytest
from datetime import datetime, timezone, timedelta

from core.time.clock import FixedClock, SystemClock


class TestSystemClock:
    def test_returns_utc_datetime(self):
        dt = SystemClock().now_utc()
        assert dt.tzinfo == timezone.utc

    def test_time_advances(self):
        clock = SystemClock()
        t1 = clock.now_utc()
        assert clock.now_utc() >= t1


class TestFixedClock:
    def test_returns_fixed_time(self):
        fixed = datetime(2026, 3, 2, 9, 0, 0, tzinfo=timezone.utc)
        clock = FixedClock(fixed)
        assert clock.now_utc() == fixed
        assert clock.now_utc() == fixed

    def test_rejects_naive_datetime(self):
        with pytest.raises(ValueError, match="timezone-aware"):
            FixedClock(datetime(2026, 1, 1))

    def test_advance(self):
        fixed = datetime(2026, 3, 2, 23, 59, 30, tzinfo=timezone.utc)
        clock = FixedClock(fixed)
        clock.advance(60)
        assert clock.now_utc() == fixed + timedelta(seconds=60)
        assert clock.now_utc().day == 3
