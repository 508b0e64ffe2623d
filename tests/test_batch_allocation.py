import math
import time

import pytest

from batchdesk.services.batch_planning import (
    AllocationOptimizer,
    BatchPlanItem,
    BudgetParameterError,
    CalculateBatchPlanRequest,
    ControlMode,
    VolumeBudgetResolver,
)


def _item(code, stock, rate, weight, is_fixed=False, fixed=None):
    return BatchPlanItem(
        product_code=code,
        product_name=f"Product {code}",
        product_size=code[1:],
        current_stock=stock,
        daily_sales_rate=rate,
        weight_per_unit=weight,
        is_fixed=is_fixed,
        user_fixed_quantity=fixed,
    )


def _sp001_items():
    return [_item('S100', 50, 5, 100), _item('S200', 20, 2, 200)]


def _used(items):
    return sum(item.recommended_units_to_produce * item.weight_per_unit for item in items)


class TestAllocationOptimizer:

    def test_sp001_example_balances_coverage(self):
        # S100 and S200 both start at 10 days of coverage, so neither is needier.
        # Levelling both to 11.2 days costs 600 g of S100 and 400 g of S200;
        # the larger size ends up with fewer grams because it sells slower.
        items = _sp001_items()
        remaining = AllocationOptimizer().allocate(items, 1000)

        s100, s200 = items
        assert s100.recommended_units_to_produce == 6
        assert s200.recommended_units_to_produce == 2
        assert _used(items) == pytest.approx(1000)
        assert remaining == pytest.approx(0)
        assert abs(s100.future_days_coverage - s200.future_days_coverage) <= 0.5
        assert all(item.was_optimized for item in items)
        assert s200.optimization_note.startswith("Limited by available volume")

    def test_greatest_need_is_served_first(self):
        s100 = _item('S100', 50, 5, 100)    # 10 days
        s200 = _item('S200', 10, 2, 200)    # 5 days
        AllocationOptimizer().allocate([s100, s200], 400)

        assert s200.recommended_units_to_produce == 2
        assert s100.recommended_units_to_produce == 0

    def test_fixed_sizes_take_their_quantity_first(self):
        items = [_item('S100', 50, 5, 100, is_fixed=True, fixed=3), _item('S200', 20, 2, 200)]
        AllocationOptimizer().allocate(items, 1000)

        fixed, optimized = items
        assert fixed.recommended_units_to_produce == 3
        assert fixed.was_optimized is False
        assert fixed.optimization_note == "Fixed by user constraint"
        assert optimized.recommended_units_to_produce == 3
        assert _used(items) <= 1000

    def test_units_round_down_without_carry(self):
        items = [_item('S300', 0, 1, 300)]
        remaining = AllocationOptimizer().allocate(items, 1000)

        assert items[0].recommended_units_to_produce == 3
        assert remaining == pytest.approx(100)

    def test_zero_sales_gets_nothing(self):
        items = [_item('S100', 50, 0, 100), _item('S200', 20, 2, 200)]
        AllocationOptimizer().allocate(items, 1000)

        idle, selling = items
        assert idle.recommended_units_to_produce == 0
        assert math.isinf(idle.future_days_coverage)
        assert idle.optimization_note == "No sales history"
        assert selling.recommended_units_to_produce == 5

    def test_target_coverage_stops_at_target(self):
        items = _sp001_items()
        remaining = AllocationOptimizer().allocate(items, 100000, target_days_coverage=20)

        for item in items:
            assert abs(item.future_days_coverage - 20) <= 1 / item.daily_sales_rate
            assert item.optimization_note.startswith("Target coverage reached")
        assert remaining > 0

    @pytest.mark.parametrize("budget", [0, 150, 999, 1000, 2345.5, 10000])
    def test_never_exceeds_budget(self, budget):
        items = [
            _item('A', 12, 3.5, 75),
            _item('B', 0, 1.2, 250),
            _item('C', 40, 0.8, 30),
            _item('D', 5, 0, 100),
        ]
        AllocationOptimizer().allocate(items, budget)

        assert _used(items) <= budget + 1e-9
        assert all(item.recommended_units_to_produce >= 0 for item in items)
        assert all(isinstance(item.recommended_units_to_produce, int) for item in items)

    def test_large_budget_is_levelled_in_bulk(self):
        items = [_item('A', 10, 1, 1), _item('B', 10, 1, 1)]

        started = time.perf_counter()
        remaining = AllocationOptimizer().allocate(items, 2_000_000)
        elapsed = time.perf_counter() - started

        assert [item.recommended_units_to_produce for item in items] == [1_000_000, 1_000_000]
        assert remaining == pytest.approx(0)
        assert elapsed < 1.0

    def test_uneven_sales_rates_share_a_level(self):
        slow, fast = _item('S100', 0, 3, 1), _item('S200', 0, 7, 1)

        started = time.perf_counter()
        remaining = AllocationOptimizer().allocate([slow, fast], 10_000_000)

        assert time.perf_counter() - started < 1.0
        assert _used([slow, fast]) <= 10_000_000
        assert remaining < 1
        assert abs(slow.future_days_coverage - fast.future_days_coverage) <= 1 / 3 + 1e-9

    def test_unaffordable_size_drops_out_and_rest_is_levelled(self):
        heavy = _item('S900', 0, 1, 1_000_000)
        light = _item('S010', 0, 1, 1)

        remaining = AllocationOptimizer().allocate([heavy, light], 1_500_000)

        assert heavy.recommended_units_to_produce == 1
        assert light.recommended_units_to_produce == 500_000
        assert remaining == pytest.approx(0)
        assert heavy.optimization_note.startswith("Limited by available volume")


class TestVolumeBudgetResolver:

    def test_mmq_multiplier(self):
        request = CalculateBatchPlanRequest('SP001', ControlMode.MMQ_MULTIPLIER, mmq_multiplier=1.5)
        budget = VolumeBudgetResolver.resolve(request, 1000, _sp001_items())
        assert budget.total == pytest.approx(1500)
        assert budget.effective_mmq_multiplier == 1.5

    def test_total_weight(self):
        request = CalculateBatchPlanRequest('SP001', ControlMode.TOTAL_WEIGHT, total_weight_to_use=2500)
        assert VolumeBudgetResolver.resolve(request, 1000, _sp001_items()).total == pytest.approx(2500)

    def test_target_days_coverage_sums_shortfalls_plus_fixed(self):
        items = [
            _item('S100', 50, 5, 100),
            _item('S200', 20, 2, 200),
            _item('S050', 0, 1, 50, is_fixed=True, fixed=4),
            _item('S500', 999, 1, 500),
        ]
        request = CalculateBatchPlanRequest('SP001', ControlMode.TARGET_DAYS_COVERAGE, target_days_coverage=20)
        budget = VolumeBudgetResolver.resolve(request, 1000, items)

        # S100: 50 units x 100 g, S200: 20 x 200 g, S500 already covered, fixed 4 x 50 g
        assert budget.total == pytest.approx(5000 + 4000 + 200)
        assert budget.fixed_volume == pytest.approx(200)

    @pytest.mark.parametrize("mode, kwargs, parameter", [
        (ControlMode.MMQ_MULTIPLIER, {}, 'mmqMultiplier'),
        (ControlMode.TOTAL_WEIGHT, {'total_weight_to_use': 0}, 'totalWeightToUse'),
        (ControlMode.TARGET_DAYS_COVERAGE, {'target_days_coverage': -3}, 'targetDaysCoverage'),
        (ControlMode.TOTAL_WEIGHT, {'total_weight_to_use': math.inf}, 'totalWeightToUse'),
        (ControlMode.MMQ_MULTIPLIER, {'mmq_multiplier': math.nan}, 'mmqMultiplier'),
    ])
    def test_missing_parameter(self, mode, kwargs, parameter):
        request = CalculateBatchPlanRequest('SP001', mode, **kwargs)
        with pytest.raises(BudgetParameterError) as excinfo:
            VolumeBudgetResolver.validate(request)
        assert excinfo.value.parameter == parameter

    def test_fixed_exceeding_budget_reports_deficit(self):
        items = [_item('S100', 0, 1, 100, is_fixed=True, fixed=12)]
        request = CalculateBatchPlanRequest('SP001', ControlMode.TOTAL_WEIGHT, total_weight_to_use=1000)
        budget = VolumeBudgetResolver.resolve(request, 1000, items)
        assert budget.fixed_exceeds_budget
        assert budget.deficit == pytest.approx(200)
