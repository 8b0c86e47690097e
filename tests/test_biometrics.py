"""Tests for vitamin-D and light quality estimators."""

from __future__ import annotations

import pytest

from lumis_engine.core.biometrics import (
    estimate_light_quality,
    estimate_vitamin_d,
    round_half_up,
    skin_multiplier,
)


class TestVitaminD:
    @pytest.mark.parametrize("uv", [0.99, 0.5, 0, -3])
    def test_zero_below_uv_one(self, uv: float) -> None:
        assert estimate_vitamin_d(uv, 60, 1) == 0

    def test_skin_type_one(self) -> None:
        assert estimate_vitamin_d(5, 20, 1) == 1000

    def test_skin_type_four_halves_output(self) -> None:
        assert estimate_vitamin_d(5, 20, 4) == 500

    def test_linear_in_duration(self) -> None:
        assert estimate_vitamin_d(5, 20, 1) == 2 * estimate_vitamin_d(5, 10, 1)
        assert estimate_vitamin_d(5, 20, 4) == 2 * estimate_vitamin_d(5, 10, 4)

    def test_rounds_to_nearest_iu(self) -> None:
        # 1000 / 1.2 = 833.33
        assert estimate_vitamin_d(5, 20, 2) == 833

    def test_unknown_skin_type_uses_default(self) -> None:
        assert skin_multiplier(9) == 1.2
        assert estimate_vitamin_d(5, 20, 9) == estimate_vitamin_d(5, 20, 2)

    def test_body_surface_fraction_scales(self) -> None:
        assert estimate_vitamin_d(5, 20, 1, body_surface_fraction=0.5) == 2000

    def test_uv_exactly_one_synthesises(self) -> None:
        assert estimate_vitamin_d(1, 10, 1) == 100


class TestRoundHalfUp:
    def test_half_rounds_up(self) -> None:
        assert round_half_up(2.5) == 3
        assert round_half_up(3.5) == 4

    def test_below_half_rounds_down(self) -> None:
        assert round_half_up(2.49) == 2


class TestLightQuality:
    def test_biological_gold(self) -> None:
        q = estimate_light_quality(12000, 30)
        assert (q.score, q.label) == (100, "Biological Gold")

    def test_high_impact(self) -> None:
        q = estimate_light_quality(5000, 90)
        assert (q.score, q.label) == (60, "High Impact")

    def test_low_impact(self) -> None:
        q = estimate_light_quality(500, 300)
        assert (q.score, q.label) == (0, "Low Impact")

    def test_lux_boundary_takes_lower_bucket(self) -> None:
        assert estimate_light_quality(10000, 300).score == 30
        assert estimate_light_quality(2500, 300).score == 10
        assert estimate_light_quality(1000, 300).score == 0

    def test_recency_boundary_is_inclusive(self) -> None:
        assert estimate_light_quality(0, 60).score == 50
        assert estimate_light_quality(0, 120).score == 30
        assert estimate_light_quality(0, 240).score == 10
        assert estimate_light_quality(0, 241).score == 0

    def test_steady_repair(self) -> None:
        q = estimate_light_quality(3000, 500)
        assert (q.score, q.label) == (30, "Steady Repair")
