"""
CRM Projects - Earned Value Management Tests
Tests: compute(), classify_health(), display helpers, portfolio stats.
Run: cd backend && pytest tests/test_evm.py -v
"""

import math

import pytest

from models.evm import HealthStatus, ProjectSnapshot, EVMResult
from services.evm import (
    classify_health,
    compute,
    describe_cpi,
    describe_performance,
    describe_spi,
    display_etc,
    evm_report,
    format_index,
    format_ratio,
    portfolio_stats,
    HEALTH_LABELS,
)


def snap(budget=0, ac=0, pv=0, ev=0, progress=0):
    return ProjectSnapshot(
        budget=budget,
        actual_cost=ac,
        planned_value=pv,
        earned_value=ev,
        progress_percentage=progress,
    )


# ═══════════════════════════════════════════════════════════════
# 1. FORMULAS
# ═══════════════════════════════════════════════════════════════

class TestCompute:

    def test_reference_scenario(self):
        """BAC=10000 AC=4000 PV=5000 EV=4500"""
        r = compute(snap(budget=10000, ac=4000, pv=5000, ev=4500))
        assert r.cpi == pytest.approx(1.125)
        assert r.spi == pytest.approx(0.9)
        assert r.cv == 500
        assert r.sv == -500
        assert r.eac == pytest.approx(8888.89, abs=0.01)
        assert r.etc == pytest.approx(4888.89, abs=0.01)
        assert r.vac == pytest.approx(1111.11, abs=0.01)
        assert r.health == HealthStatus.GOOD

    def test_all_zero_with_budget(self):
        """Nothing recorded yet: neutral sentinels, forecast = budget"""
        r = compute(snap(budget=10000))
        assert r.cpi == 0
        assert r.spi == 0
        assert r.eac == 10000
        assert r.etc == 10000
        assert r.vac == 0
        assert r.health == HealthStatus.CRITICAL

    def test_all_zero_does_not_raise(self):
        r = compute(snap())
        assert r.cpi == 0 and r.spi == 0
        assert r.eac == 0 and r.etc == 0 and r.vac == 0
        assert r.tcpi is None

    def test_zero_actual_cost_gives_zero_cpi(self):
        r = compute(snap(budget=5000, ac=0, pv=1000, ev=800))
        assert r.cpi == 0
        assert not math.isnan(r.cpi) and not math.isinf(r.cpi)
        assert r.eac == 5000

    def test_zero_planned_value_gives_zero_spi(self):
        r = compute(snap(budget=5000, ac=1000, pv=0, ev=800))
        assert r.spi == 0
        assert r.cpi == pytest.approx(0.8)

    def test_variances_are_exact(self):
        r = compute(snap(budget=1000, ac=333.25, pv=410.5, ev=120.75))
        assert r.cv == 120.75 - 333.25
        assert r.sv == 120.75 - 410.5

    def test_zero_earned_value_with_cost(self):
        """Money spent, nothing earned: cpi 0 -> eac falls back to budget"""
        r = compute(snap(budget=2000, ac=500, pv=400, ev=0))
        assert r.cpi == 0
        assert r.spi == 0
        assert r.eac == 2000
        assert r.etc == 1500
        assert r.tcpi == pytest.approx(2000 / 1500)

    def test_etc_is_not_clamped(self):
        """Spent beyond the forecast: etc goes negative and tcpi is undefined"""
        r = compute(snap(budget=1000, ac=2000, pv=1000, ev=1500))
        assert r.cpi == pytest.approx(0.75)
        assert r.eac == pytest.approx(1333.33, abs=0.01)
        assert r.etc == pytest.approx(-666.67, abs=0.01)
        assert r.tcpi is None

        r = compute(snap(budget=1000, ac=1500))
        assert r.cpi == 0
        assert r.eac == 1000
        assert r.etc == -500
        assert r.tcpi is None

    def test_tcpi_when_work_remains(self):
        r = compute(snap(budget=10000, ac=4000, pv=5000, ev=4500))
        assert r.tcpi == pytest.approx((10000 - 4500) / r.etc)

    def test_earned_value_above_cost_and_plan(self):
        r = compute(snap(budget=1000, ac=200, pv=300, ev=600))
        assert r.cpi == pytest.approx(3.0)
        assert r.spi == pytest.approx(2.0)
        assert r.health == HealthStatus.EXCELLENT

    def test_idempotent(self):
        s = snap(budget=7000, ac=2100, pv=2500, ev=2300)
        assert compute(s) == compute(s)

    def test_returns_evm_result(self):
        assert isinstance(compute(snap(budget=1)), EVMResult)


# ═══════════════════════════════════════════════════════════════
# 2. HEALTH CLASSIFICATION
# ═══════════════════════════════════════════════════════════════

class TestClassifyHealth:

    @pytest.mark.parametrize("cpi,spi,expected", [
        (1.0, 1.0, HealthStatus.EXCELLENT),
        (1.5, 1.2, HealthStatus.EXCELLENT),
        (0.95, 0.95, HealthStatus.GOOD),
        (0.9, 0.9, HealthStatus.GOOD),
        (1.125, 0.9, HealthStatus.GOOD),
        (0.89999, 0.9, HealthStatus.WARNING),
        (0.85, 0.5, HealthStatus.WARNING),
        (0.5, 0.8, HealthStatus.WARNING),
        (0.5, 0.5, HealthStatus.CRITICAL),
        (0.79999, 0.79999, HealthStatus.CRITICAL),
        (0, 0, HealthStatus.CRITICAL),
    ])
    def test_bands(self, cpi, spi, expected):
        assert classify_health(cpi, spi) == expected

    def test_rule_three_is_or(self):
        """Either index at 0.8 avoids critical, the other may be 0"""
        assert classify_health(0.8, 0) == HealthStatus.WARNING
        assert classify_health(0, 0.8) == HealthStatus.WARNING

    def test_excellent_needs_both(self):
        assert classify_health(2.0, 0.99) == HealthStatus.GOOD
        assert classify_health(2.0, 0.5) == HealthStatus.WARNING

    def test_every_status_has_a_label(self):
        assert set(HEALTH_LABELS) == set(HealthStatus)


# ═══════════════════════════════════════════════════════════════
# 3. DISPLAY HELPERS
# ═══════════════════════════════════════════════════════════════

class TestDisplay:

    def test_format_index_placeholder(self):
        assert format_index(0) == "-"
        assert format_index(1.234) == "1.23"
        assert format_index(1.5) == "1.50"
        assert format_index(0.9) == "0.90"

    def test_format_ratio_sentinel(self):
        assert format_ratio(None) == "-"
        assert format_ratio(1.5) == "1.50"

    def test_display_etc_clamps(self):
        assert display_etc(-500) == 0
        assert display_etc(4888.89) == 4888.89

    def test_performance_messages(self):
        assert "sotto budget e in anticipo" in describe_performance(1.1, 1.0)
        assert describe_performance(0.8, 0.9) == "Il progetto è in ritardo e sopra budget"
        assert describe_performance(0.8, 1.2) == "Il progetto è sopra budget"
        assert describe_performance(1.2, 0.8) == "Il progetto è in ritardo sui tempi"

    def test_index_messages(self):
        assert "Non calcolabile" in describe_cpi(0)
        assert "solo €0.80" in describe_cpi(0.8)
        assert "anticipo del 20%" in describe_spi(1.2)
        assert "ritardo del 10%" in describe_spi(0.9)
        assert "nessun valore pianificato" in describe_spi(0)

    def test_report_payload(self):
        report = evm_report(snap(budget=10000, ac=4000, pv=5000, ev=4500, progress=45))
        assert report["inputs"] == {
            "bac": 10000, "ac": 4000, "pv": 5000, "ev": 4500, "progress_percentage": 45,
        }
        assert report["metrics"]["health"] == "good"
        assert report["health"]["label"] == "Buono"
        assert report["display"]["cpi"] == format_index(report["metrics"]["cpi"])
        assert report["display"]["spi"] == "0.90"
        assert report["display"]["over_budget_forecast"] is False

    def test_report_with_nothing_recorded(self):
        report = evm_report(snap(budget=10000))
        assert report["metrics"]["tcpi"] == pytest.approx(1.0)
        assert report["display"]["cpi"] == "-"
        assert report["display"]["spi"] == "-"
        assert report["health"]["status"] == "critical"

    def test_report_tcpi_placeholder(self):
        report = evm_report(snap(budget=1000, ac=1500))
        assert report["metrics"]["tcpi"] is None
        assert report["display"]["tcpi"] == "-"
        assert report["display"]["etc"] == 0


# ═══════════════════════════════════════════════════════════════
# 4. SNAPSHOT FROM STORED DOCUMENT
# ═══════════════════════════════════════════════════════════════

class TestSnapshotFromDocument:

    def test_missing_amounts_default_to_zero(self):
        s = ProjectSnapshot.from_document({"id": "p1", "budget": 100, "earned_value": None})
        assert s.budget == 100
        assert s.earned_value == 0
        assert s.actual_cost == 0
        assert s.planned_value == 0

    def test_snapshot_is_frozen(self):
        s = snap(budget=1)
        with pytest.raises(Exception):
            s.budget = 2


# ═══════════════════════════════════════════════════════════════
# 5. PORTFOLIO
# ═══════════════════════════════════════════════════════════════

class TestPortfolioStats:

    def test_empty(self):
        stats = portfolio_stats([])
        assert stats["total"] == 0
        assert stats["total_budget"] == 0
        assert stats["avg_cpi"] is None
        assert stats["avg_cpi_display"] == "-"

    def test_totals_and_counts(self):
        projects = [
            {"status": "planning", "budget": 1000},
            {"status": "in_progress", "budget": 5000, "earned_value": 2000, "actual_cost": 1600,
             "planned_value": 2000},
            {"status": "completed", "budget": 3000, "earned_value": 3000, "actual_cost": 3400,
             "planned_value": 3000},
            {"status": "in_progress", "budget": None},
        ]
        stats = portfolio_stats(projects)
        assert stats["total"] == 4
        assert stats["planning"] == 1
        assert stats["in_progress"] == 2
        assert stats["completed"] == 1
        assert stats["on_hold"] == 0
        assert stats["total_budget"] == 9000
        assert stats["avg_cpi"] == pytest.approx(5000 / 5000)
        assert stats["avg_cpi_display"] == "1.00"

    def test_health_breakdown(self):
        projects = [
            {"status": "in_progress", "budget": 100, "earned_value": 100, "actual_cost": 100, "planned_value": 100},
            {"status": "in_progress", "budget": 100, "earned_value": 95, "actual_cost": 100, "planned_value": 100},
            {"status": "planning", "budget": 100},
        ]
        stats = portfolio_stats(projects)
        assert stats["health_breakdown"] == {
            "excellent": 1, "good": 1, "warning": 0, "critical": 1,
        }
