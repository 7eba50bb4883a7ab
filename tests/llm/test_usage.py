"""Tests for token cost calculation and usage accumulation."""

import pytest

from newsdesk.llm.usage import AIUsage, UsageAccumulator, calculate_cost


class TestCalculateCost:
    """Tests for per-model pricing."""

    def test_flash_pricing(self):
        """1M input + 1M output tokens cost the listed prices."""
        assert calculate_cost("gemini-2.5-flash", 1_000_000, 1_000_000) == pytest.approx(2.80)

    def test_pro_pricing(self):
        assert calculate_cost("gemini-2.5-pro", 2_000_000, 0) == pytest.approx(2.50)

    def test_unknown_model_priced_as_flash(self):
        assert calculate_cost("some-new-model", 1_000_000, 0) == pytest.approx(0.30)

    def test_zero_tokens_free(self):
        assert calculate_cost("gemini-2.5-flash", 0, 0) == 0


class TestAIUsage:
    def test_from_tokens_fills_cost(self):
        usage = AIUsage.from_tokens("gemini-2.5-flash", 1000, 500)

        assert usage.total_tokens == 1500
        assert usage.cost_usd == pytest.approx(1000 / 1e6 * 0.30 + 500 / 1e6 * 2.50)


class TestUsageAccumulator:
    """Tests for per-run accumulation."""

    def test_sums_every_call(self):
        """Usage of all added calls is summed."""
        acc = UsageAccumulator("gemini-2.5-flash")
        first = AIUsage.from_tokens("gemini-2.5-flash", 1000, 200)
        second = AIUsage.from_tokens("gemini-2.5-flash", 3000, 800)

        acc.add(first)
        acc.add(second)
        snapshot = acc.snapshot()

        assert acc.calls == 2
        assert snapshot.input_tokens == 4000
        assert snapshot.output_tokens == 1000
        assert snapshot.cost_usd == pytest.approx(first.cost_usd + second.cost_usd)

    def test_accumulators_are_independent(self):
        """Two runs never share totals."""
        a = UsageAccumulator("gemini-2.5-flash")
        b = UsageAccumulator("gemini-2.5-flash")

        a.add(AIUsage.from_tokens("gemini-2.5-flash", 100, 100))

        assert b.snapshot().total_tokens == 0

    def test_snapshot_is_detached(self):
        acc = UsageAccumulator("gemini-2.5-flash")
        snapshot = acc.snapshot()

        acc.add(AIUsage.from_tokens("gemini-2.5-flash", 100, 100))

        assert snapshot.total_tokens == 0
