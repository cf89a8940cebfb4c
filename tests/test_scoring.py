"""Tests for weight tables, the convergence scorer and confidence tiers.

Tests cover:
- Fallback weights for absent categories vs explicit zeros
- Worked convergence example, bonuses, penalties and clamping
- Minimum active signals and tie-breaking
- Score/edge tiers and the append-only tier registry
"""

from datetime import date

import pytest
from pydantic import ValidationError

from convergence_picks.exceptions import InvalidConfiguration
from convergence_picks.ml.data.schema import Market, Sport
from convergence_picks.scoring.convergence import NEUTRAL_SCORE, score_convergence
from convergence_picks.scoring.tiers import (
    BASELINE_TIERS,
    REJECT,
    EdgeTierThresholds,
    TierRegistry,
    TierThresholds,
    assign_tier,
    edge_tier,
    make_tier_table,
)
from convergence_picks.scoring.weights import DEFAULT_WEIGHTS, WeightTable, default_weight_table
from convergence_picks.signals.base import Direction, SignalResult, Strength

SCENARIO_WEIGHTS = {"modelEdge": 0.30, "seasonATS": 0.15, "h2h": 0.05}


@pytest.fixture
def scenario_signals(make_signal):
    """Two home signals against one moderate away signal."""
    return [
        make_signal("modelEdge", Direction.HOME, 8.0, 0.8, Strength.STRONG),
        make_signal("seasonATS", Direction.HOME, 4.0, 0.5, Strength.MODERATE),
        make_signal("h2h", Direction.AWAY, 6.0, 0.6, Strength.MODERATE),
    ]


# ============================================================================
# Weights
# ============================================================================


class TestWeightTable:
    def test_absent_category_gets_fallback(self):
        table = WeightTable({"modelEdge": 0.3})
        assert table.get("h2h") == 0.1

    def test_explicit_zero_is_kept(self):
        table = WeightTable({"modelEdge": 0.3, "weather": 0.0})
        assert table.get("weather") == 0.0
        assert "weather" in table

    def test_custom_fallback(self):
        assert WeightTable({"modelEdge": 0.3}, fallback=0.25).get("pace") == 0.25

    @pytest.mark.parametrize("bad", [-0.1, float("nan"), float("inf"), "0.3"])
    def test_invalid_weight(self, bad):
        with pytest.raises(InvalidConfiguration):
            WeightTable({"modelEdge": bad})

    def test_all_zero_table_rejected(self):
        with pytest.raises(InvalidConfiguration, match="no positive weight"):
            WeightTable({"modelEdge": 0.0, "h2h": 0.0})

    def test_default_tables_cover_every_sport_and_market(self):
        for sport in Sport:
            for market in Market:
                assert (sport, market) in DEFAULT_WEIGHTS
                default_weight_table(sport, market)

    def test_indoor_totals_switch_off_weather(self):
        assert default_weight_table(Sport.NBA, Market.TOTAL).get("weather") == 0.0

    def test_unknown_market(self):
        with pytest.raises(InvalidConfiguration):
            default_weight_table(Sport.NFL, "MONEYLINE")


# ============================================================================
# Convergence scorer
# ============================================================================


class TestScoreConvergence:
    def test_worked_example(self, scenario_signals):
        result = score_convergence(scenario_signals, SCENARIO_WEIGHTS)

        # raw = (2.22 - 0.18) / 5 = 0.408 -> 82.64, +4 agreement, -5 opposing, +3 evidence
        assert result.score == 85
        assert result.direction == Direction.HOME
        assert result.raw_strength == pytest.approx(0.408)
        assert result.active_count == 3
        assert result.agreeing_count == 2

    def test_reasons_agreeing_first_then_opposing(self, scenario_signals):
        result = score_convergence(scenario_signals, SCENARIO_WEIGHTS)

        assert [r.category for r in result.reasons] == ["modelEdge", "seasonATS", "h2h"]
        assert [r.weight for r in result.reasons] == [64, 20, 36]
        assert result.reasons[-1].text.startswith("[OPPOSING] ")
        assert not result.reasons[-1].agrees

    def test_noise_signals_left_out_of_reasons(self, make_signal):
        signals = [
            make_signal("modelEdge", Direction.HOME, 8.0, 0.8, Strength.STRONG),
            make_signal("seasonATS", Direction.HOME, 4.0, 0.5, Strength.MODERATE),
            make_signal("h2h", Direction.HOME, 0.5, 0.5, Strength.NOISE),
        ]
        result = score_convergence(signals, SCENARIO_WEIGHTS)
        assert "h2h" not in [r.category for r in result.reasons]

    def test_unanimous_strong_signals_clamp_to_100(self, make_signal):
        signals = [
            make_signal(c, Direction.OVER, 10.0, 1.0, Strength.STRONG)
            for c in ("modelEdge", "seasonOU", "pace")
        ]
        result = score_convergence(signals, {"modelEdge": 0.4, "seasonOU": 0.3, "pace": 0.3})
        assert result.score == 100
        assert result.direction == Direction.OVER

    def test_no_active_signals(self):
        signals = [SignalResult.neutral("modelEdge"), SignalResult.neutral("h2h")]
        result = score_convergence(signals, SCENARIO_WEIGHTS)
        assert result.score == NEUTRAL_SCORE
        assert result.direction == Direction.NEUTRAL
        assert result.reasons == ()

    def test_below_min_active(self, scenario_signals):
        result = score_convergence(scenario_signals[:2], SCENARIO_WEIGHTS, min_active=3)
        assert result.score == 50
        assert result.direction == Direction.NEUTRAL
        assert result.active_count == 2

    def test_min_active_can_be_lowered(self, scenario_signals):
        result = score_convergence(scenario_signals[:1], SCENARIO_WEIGHTS, min_active=1)
        assert result.direction == Direction.HOME

    def test_tie_goes_to_first_seen_direction(self, make_signal):
        signals = [
            make_signal("modelEdge", Direction.AWAY, 5.0, 0.5, Strength.MODERATE),
            make_signal("seasonATS", Direction.HOME, 5.0, 0.5, Strength.MODERATE),
        ]
        result = score_convergence(signals, {"modelEdge": 0.3, "seasonATS": 0.3}, min_active=2)

        assert result.direction == Direction.AWAY
        # raw 0 -> 50, one significant opposing signal -> 45
        assert result.score == 45

    def test_silent_weighted_categories_dilute(self, scenario_signals):
        base = score_convergence(scenario_signals, SCENARIO_WEIGHTS)
        diluted = score_convergence(
            [*scenario_signals, SignalResult.neutral("rest")],
            {**SCENARIO_WEIGHTS, "rest": 0.5},
        )
        assert diluted.score < base.score
        assert diluted.direction == base.direction

    def test_fallback_weight_applies_to_absent_category(self, make_signal):
        signals = [
            make_signal("modelEdge", Direction.HOME, 6.0, 0.5, Strength.MODERATE),
            make_signal("seasonATS", Direction.HOME, 6.0, 0.5, Strength.MODERATE),
            make_signal("newSignal", Direction.AWAY, 10.0, 1.0, Strength.STRONG),
        ]
        # newSignal is absent from the table, so it counts at 0.1, not 0
        with_fallback = score_convergence(signals, WeightTable({"modelEdge": 0.3, "seasonATS": 0.3}))
        switched_off = score_convergence(
            signals, WeightTable({"modelEdge": 0.3, "seasonATS": 0.3, "newSignal": 0.0})
        )
        assert with_fallback.score < switched_off.score

    def test_full_opposition_penalty_floors_at_zero(self, make_signal):
        signals = [
            make_signal("modelEdge", Direction.UNDER, 10.0, 1.0, Strength.STRONG),
            make_signal("seasonOU", Direction.OVER, 10.0, 1.0, Strength.STRONG),
            make_signal("pace", Direction.OVER, 10.0, 1.0, Strength.STRONG),
        ]
        result = score_convergence(signals, {"modelEdge": 1.0, "seasonOU": 0.0, "pace": 0.0})
        assert 0 <= result.score <= 100

    def test_score_always_in_range(self, make_signal):
        for magnitude in (0.5, 2.0, 5.0, 10.0):
            for confidence in (0.1, 0.5, 1.0):
                signals = [
                    make_signal("modelEdge", Direction.HOME, magnitude, confidence, Strength.STRONG),
                    make_signal("seasonATS", Direction.AWAY, magnitude, confidence, Strength.WEAK),
                    make_signal("h2h", Direction.HOME, 10.0, 1.0, Strength.STRONG),
                ]
                result = score_convergence(signals, SCENARIO_WEIGHTS)
                assert 0 <= result.score <= 100


# ============================================================================
# Tiers
# ============================================================================


class TestAssignTier:
    @pytest.mark.parametrize(
        "score,tier",
        [(100, 5), (85, 5), (84, 4), (70, 4), (69, 3), (55, 3), (54, REJECT), (0, REJECT)],
    )
    def test_score_only(self, score, tier):
        assert assign_tier(score, None, TierThresholds()) == tier

    def test_edge_caps_tier(self):
        thresholds = TierThresholds(edge=EdgeTierThresholds(t3=2.0, t4=4.0, t5=6.0))
        assert assign_tier(90, 3.0, thresholds) == 3
        assert assign_tier(90, 6.5, thresholds) == 5
        assert assign_tier(60, 10.0, thresholds) == 3
        assert assign_tier(90, 1.0, thresholds) == REJECT

    def test_missing_edge_rejected_when_edge_thresholds_set(self):
        thresholds = TierThresholds(edge=EdgeTierThresholds(t3=2.0, t4=4.0, t5=6.0))
        assert assign_tier(95, None, thresholds) == REJECT

    def test_edge_tier_uses_magnitude(self):
        assert edge_tier(-5.0, EdgeTierThresholds(t3=2.0, t4=4.0, t5=6.0)) == 4

    def test_thresholds_must_be_ordered(self):
        with pytest.raises(ValidationError):
            TierThresholds(score_t3=80, score_t4=70, score_t5=90)
        with pytest.raises(ValidationError):
            EdgeTierThresholds(t3=5.0, t4=2.0, t5=6.0)


class TestTierTables:
    def test_overrides_per_sport_and_market(self):
        table = make_tier_table(
            version="v-test",
            created=date(2025, 3, 1),
            overrides={(Sport.NCAAMB, Market.TOTAL): {"score_t3": 60, "score_t4": 72, "score_t5": 88}},
        )

        assert table.thresholds_for(Sport.NCAAMB, Market.TOTAL).score_t3 == 60
        assert table.thresholds_for(Sport.NCAAMB, Market.SPREAD).score_t3 == 55

    def test_invalid_table_raises_configuration_error(self):
        with pytest.raises(InvalidConfiguration, match="v-bad"):
            make_tier_table(version="v-bad", created=date(2025, 3, 1), default={"score_t3": 90})

    def test_registry_returns_latest(self):
        registry = TierRegistry([BASELINE_TIERS])
        newer = make_tier_table(version="v2", created=date(2025, 4, 1))
        registry.register(newer)

        assert registry.get() is newer
        assert registry.get("baseline-1") is BASELINE_TIERS
        assert registry.versions == ["baseline-1", "v2"]

    def test_registry_is_append_only(self):
        registry = TierRegistry([BASELINE_TIERS])
        with pytest.raises(InvalidConfiguration, match="already registered"):
            registry.register(make_tier_table(version="baseline-1", created=date(2025, 4, 1)))

    def test_unknown_version(self):
        with pytest.raises(InvalidConfiguration, match="Unknown"):
            TierRegistry([BASELINE_TIERS]).get("nope")

    def test_empty_registry(self):
        with pytest.raises(InvalidConfiguration):
            TierRegistry().get()
