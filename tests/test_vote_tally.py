"""Tests for vote counting and the pass/fail decision."""

import pytest

from AgoraPact.cogs.Governance.dto.SignalCountsDto import SignalCountsDto
from AgoraPact.cogs.Governance.VoteTally import VoteTally


class TestDiscountBotSignal:
    @pytest.mark.parametrize(
        "raw, bot, expected",
        [(3, True, 2), (3, False, 3), (1, True, 0), (0, True, 0), (0, False, 0)],
    )
    def test_discount(self, raw, bot, expected):
        assert VoteTally.discount_bot_signal(raw, bot) == expected

    def test_tally_applies_to_both_options(self):
        assert VoteTally.tally(4, 2, True) == (3, 1)
        assert VoteTally.tally(4, 2, False) == (4, 2)


class TestTallySignals:
    def test_uses_each_options_own_bot_flag(self):
        signals = SignalCountsDto(
            counts={"✅": 4, "❌": 2}, bot_reacted={"✅": True, "❌": False}
        )
        assert VoteTally.tally_signals(signals) == (3, 2)

    def test_missing_options_count_as_zero(self):
        assert VoteTally.tally_signals(SignalCountsDto()) == (0, 0)

    def test_support_count(self):
        signals = SignalCountsDto(counts={"✅": 3}, bot_reacted={"✅": True})
        assert VoteTally.support_count(signals) == 2


class TestDecision:
    def test_majority_passes(self):
        assert VoteTally.is_passed(3, 2) is True

    def test_tie_fails(self):
        assert VoteTally.is_passed(2, 2) is False
        assert VoteTally.is_passed(0, 0) is False

    def test_minority_fails(self):
        assert VoteTally.is_passed(1, 4) is False
