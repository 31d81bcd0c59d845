# tests/unit/intelligence/test_unit_budget.py - v1
"""Tests for intelligence/budget.py."""

from __future__ import annotations

from docintel.intelligence.budget import Budget, extract_timeout_ms, short_timeout_ms


class _Clock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


class TestBudget:
    def test_remaining_decreases(self):
        clock = _Clock()
        budget = Budget(total_ms=10_000, clock=clock)
        assert budget.remaining_ms() == 10_000
        clock.now += 2.5
        assert budget.elapsed_ms() == 2_500
        assert budget.remaining_ms() == 7_500

    def test_remaining_never_negative(self):
        clock = _Clock()
        budget = Budget(total_ms=1_000, clock=clock)
        clock.now += 5
        assert budget.remaining_ms() == 0

    def test_exceeds_is_strict(self):
        clock = _Clock()
        budget = Budget(total_ms=2_000, clock=clock)
        assert budget.exceeds(1_999)
        assert not budget.exceeds(2_000)


class TestStageTimeouts:
    def test_extract_timeout(self):
        assert extract_timeout_ms(120_000, 45_000, 10_000, 3_000) == 45_000
        assert extract_timeout_ms(20_000, 45_000, 10_000, 3_000) == 17_000
        assert extract_timeout_ms(5_000, 45_000, 10_000, 3_000) == 10_000

    def test_short_timeout(self):
        assert short_timeout_ms(120_000, 25_000, 8_000) == 25_000
        assert short_timeout_ms(12_000, 25_000, 8_000) == 12_000
        assert short_timeout_ms(3_000, 25_000, 8_000) == 8_000
