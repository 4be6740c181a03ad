"""Tests for the projection simulator."""

from datetime import date

import pytest
from conftest import (
    make_animal,
    make_expense,
    make_feed,
    make_ration,
    make_snapshot,
    make_weighing,
)

from feedlot.engine.projection import (
    MIN_GCAA,
    GcaaSource,
    OverheadMode,
    Projection,
    ProjectionSettings,
    TargetMode,
    Valuation,
    _one_month_before,
    daily_overhead_per_animal,
    project,
    project_farm,
    sale_value,
    summarize_projections,
)

TODAY = date(2026, 3, 1)


def run(current_weight=400.0, gcaa=2.0, ration=0.0, overhead=0.0, existing=0.0, **settings):
    return project(
        current_weight=current_weight,
        gcaa=gcaa,
        daily_ration_cost=ration,
        daily_overhead_per_animal=overhead,
        existing_total_cost=existing,
        settings=ProjectionSettings(**settings),
        today=TODAY,
    )


class TestProject:
    """Tests for the single-animal projection."""

    def test_days_to_target_weight(self):
        """400 kg to 420 kg at 2.0 kg/day takes 10 days."""
        result = run(400, 2.0, target_weight_kg=420)
        assert result.days_needed == pytest.approx(10.0)
        assert result.projected_weight == 420
        assert result.target_date == date(2026, 3, 11)

    def test_weight_at_target_date(self):
        """15 days at 1.5 kg/day adds 22.5 kg."""
        result = run(400, 1.5, mode=TargetMode.DATE, target_date=date(2026, 3, 16))
        assert result.days_needed == 15
        assert result.projected_weight == pytest.approx(422.5)

    def test_target_date_in_the_past(self):
        result = run(400, 1.5, mode=TargetMode.DATE, target_date=date(2026, 2, 1))
        assert result.days_needed == 0
        assert result.projected_weight == 400

    def test_already_above_target_weight(self):
        result = run(750, 2.0, target_weight_kg=725)
        assert result.days_needed == 0
        assert result.projected_weight == 750
        assert result.incremental_cost == 0

    @pytest.mark.parametrize("gcaa", [0.0, -1.2, None])
    def test_non_positive_gcaa_uses_minimum(self, gcaa):
        result = run(400, gcaa, target_weight_kg=401)
        assert result.gcaa == MIN_GCAA
        assert result.days_needed == pytest.approx(1 / MIN_GCAA)

    def test_incremental_cost_and_profit(self):
        result = run(400, 2.0, ration=50.0, overhead=10.0, existing=45000.0, target_weight_kg=420)
        assert result.daily_cost == pytest.approx(60.0)
        assert result.incremental_cost == pytest.approx(600.0)
        expected_value = 420 * 0.58 * 560
        assert result.sale_value == pytest.approx(expected_value)
        assert result.profit == pytest.approx(expected_value - 45000 - 600)


class TestSaleValue:
    """Tests for carcass and live valuation."""

    def test_carcass(self):
        settings = ProjectionSettings(yield_percent=60, carcass_price_per_kg=500)
        assert sale_value(700, settings) == pytest.approx(700 * 0.6 * 500)

    def test_live(self):
        settings = ProjectionSettings(valuation=Valuation.LIVE, live_price_per_kg=250)
        assert sale_value(700, settings) == pytest.approx(175000)


class TestDailyOverhead:
    """Tests for the per-animal daily overhead estimate."""

    def test_last_month_expenses(self):
        expenses = [
            make_expense(date(2026, 1, 31), 9000),  # before the window
            make_expense(date(2026, 2, 1), 3000),
            make_expense(date(2026, 2, 20), 3000),
            make_expense(date(2026, 3, 2), 9000),  # after today
            make_expense(None, 9000),
        ]
        result = daily_overhead_per_animal(expenses, 10, ProjectionSettings(), TODAY)
        assert result == pytest.approx(6000 / 10 / 30)

    def test_custom_monthly_overhead(self):
        settings = ProjectionSettings(overhead_mode=OverheadMode.CUSTOM, custom_monthly_overhead=30000)
        assert daily_overhead_per_animal([], 100, settings, TODAY) == pytest.approx(10.0)

    def test_no_animals_counts_as_one(self):
        settings = ProjectionSettings(overhead_mode=OverheadMode.CUSTOM, custom_monthly_overhead=300)
        assert daily_overhead_per_animal([], 0, settings, TODAY) == pytest.approx(10.0)

    def test_month_start_clamps_short_months(self):
        assert _one_month_before(date(2026, 3, 31)) == date(2026, 2, 28)
        assert _one_month_before(date(2026, 1, 15)) == date(2025, 12, 15)


class TestProjectFarm:
    """Tests for whole-farm projection."""

    def setup_method(self):
        self.snapshot = make_snapshot(
            as_of=TODAY,
            animals=[
                make_animal("a1", group_id="g1", registered=date(2026, 1, 1), weight=300, purchase_price=40000),
                make_animal("a2", group_id="g2", registered=date(2026, 1, 1), weight=350),
                make_animal("a3", group_id=None, registered=date(2026, 1, 1), weight=320),
                make_animal("gone", group_id="g1", registered=date(2026, 1, 1), passive_on=date(2026, 2, 1)),
            ],
            weighings=[
                make_weighing("a1", date(2026, 2, 1), 400),
                make_weighing("a1", date(2026, 2, 11), 420),
            ],
            feeds=[make_feed("f1", price=10.0)],
            rations=[make_ration("r1", "g1", {"f1": 5.0}, start=date(2026, 1, 1))],
        )

    def test_only_active_animals(self):
        projections = project_farm(self.snapshot, ProjectionSettings())
        assert [p.animal_id for p in projections] == ["a1", "a2", "a3"]

    def test_uses_latest_weight_and_last_interval_gcaa(self):
        settings = ProjectionSettings(gcaa_source=GcaaSource.LAST, target_weight_kg=440)
        p = project_farm(self.snapshot, settings, group_ids=["g1"])[0]
        assert p.current_weight == 420
        assert p.gcaa == pytest.approx(2.0)
        assert p.days_needed == pytest.approx(10.0)
        assert p.daily_cost == pytest.approx(50.0)

    def test_animal_without_weighings_falls_back_to_minimum_gcaa(self):
        settings = ProjectionSettings(gcaa_source=GcaaSource.LAST)
        p = project_farm(self.snapshot, settings, group_ids=["g2"])[0]
        assert p.current_weight == 350
        assert p.gcaa == MIN_GCAA

    def test_existing_cost_comes_from_allocation(self):
        p = project_farm(self.snapshot, ProjectionSettings(), group_ids=["g1"])[0]
        # Purchase plus 60 days on a 50/day ration (Jan 1 - Mar 1)
        assert p.existing_cost == pytest.approx(40000 + 60 * 50.0)

    def test_ungrouped_filter(self):
        projections = project_farm(self.snapshot, ProjectionSettings(), group_ids=[None])
        assert [p.animal_id for p in projections] == ["a3"]

    def test_group_named_ungrouped_is_not_the_ungrouped_animals(self):
        self.snapshot.animals[1].group_id = "ungrouped"
        projections = project_farm(self.snapshot, ProjectionSettings(), group_ids=["ungrouped"])
        assert [p.animal_id for p in projections] == ["a2"]

    def test_overhead_spread_over_active_animals(self):
        self.snapshot.general_expenses.append(make_expense(date(2026, 2, 15), 9000))
        p = project_farm(self.snapshot, ProjectionSettings(), group_ids=["g2"])[0]
        assert p.daily_cost == pytest.approx(9000 / 3 / 30)


class TestSummarizeProjections:
    """Tests for summarize_projections."""

    def _projection(self, profit, group_id):
        return Projection(
            days_needed=10,
            projected_weight=500,
            incremental_cost=100,
            sale_value=profit + 100,
            profit=profit,
            target_date=TODAY,
            gcaa=1.0,
            current_weight=490,
            existing_cost=0,
            daily_cost=10,
            group_id=group_id,
        )

    def test_totals_and_average(self):
        summary = summarize_projections(
            [self._projection(1000, "g1"), self._projection(-200, "g1"), self._projection(400, None)]
        )
        assert summary.count == 3
        assert summary.total_profit == pytest.approx(1200)
        assert summary.average_profit == pytest.approx(400)
        assert summary.total_incremental_cost == pytest.approx(300)
        assert summary.by_group == {"g1": 2, None: 1}

    def test_empty(self):
        summary = summarize_projections([])
        assert summary.count == 0
        assert summary.average_profit == 0.0
