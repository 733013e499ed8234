"""
╔══════════════════════════════════════════════════════════════════════════════╗
║  CRM Projects - Earned Value Management                                      ║
║                                                                              ║
║  compute(snapshot) -> EVMResult                                              ║
║    cpi  = AC > 0  ? EV / AC          : 0                                     ║
║    spi  = PV > 0  ? EV / PV          : 0                                     ║
║    cv   = EV - AC           sv  = EV - PV                                    ║
║    eac  = cpi > 0 ? BAC / cpi        : BAC                                   ║
║    etc  = eac - AC          vac = BAC - eac                                  ║
║    tcpi = etc > 0 ? (BAC - EV) / etc : None                                  ║
║                                                                              ║
║  INVARIANTS:                                                                 ║
║  - never raises, all-zero snapshots included                                 ║
║  - cpi/spi are 0 (not NaN/inf) when their denominator is 0                   ║
║  - etc is NOT clamped here, only display_etc() clamps                        ║
║  - pure functions, no I/O, no shared state                                   ║
╚══════════════════════════════════════════════════════════════════════════════╝
"""

from typing import Dict, Iterable, Optional

from models.evm import HealthStatus, ProjectSnapshot, EVMResult
from models.project import VALID_PROJECT_STATUSES


# Health bands (inclusive lower bounds)
EXCELLENT_THRESHOLD = 1.0
GOOD_THRESHOLD = 0.9
WARNING_THRESHOLD = 0.8

NOT_AVAILABLE = "-"

HEALTH_LABELS = {
    HealthStatus.EXCELLENT: "Ottimo",
    HealthStatus.GOOD: "Buono",
    HealthStatus.WARNING: "Attenzione",
    HealthStatus.CRITICAL: "Critico",
}


# ════════════════════════════════════════════════════════════════════════════
# CORE
# ════════════════════════════════════════════════════════════════════════════

def classify_health(cpi: float, spi: float) -> HealthStatus:
    """
    First match wins:
      1. cpi >= 1   AND spi >= 1   -> excellent
      2. cpi >= 0.9 AND spi >= 0.9 -> good
      3. cpi >= 0.8 OR  spi >= 0.8 -> warning
      4. critical
    """
    if cpi >= EXCELLENT_THRESHOLD and spi >= EXCELLENT_THRESHOLD:
        return HealthStatus.EXCELLENT
    if cpi >= GOOD_THRESHOLD and spi >= GOOD_THRESHOLD:
        return HealthStatus.GOOD
    if cpi >= WARNING_THRESHOLD or spi >= WARNING_THRESHOLD:
        return HealthStatus.WARNING
    return HealthStatus.CRITICAL


def compute(snapshot: ProjectSnapshot) -> EVMResult:
    """Earned Value metrics and health for one project snapshot"""
    bac = snapshot.budget
    ac = snapshot.actual_cost
    pv = snapshot.planned_value
    ev = snapshot.earned_value

    cpi = ev / ac if ac > 0 else 0.0
    spi = ev / pv if pv > 0 else 0.0
    cv = ev - ac
    sv = ev - pv
    eac = bac / cpi if cpi > 0 else bac
    etc = eac - ac
    vac = bac - eac
    tcpi = (bac - ev) / etc if etc > 0 else None

    return EVMResult(
        cpi=cpi,
        spi=spi,
        cv=cv,
        sv=sv,
        eac=eac,
        etc=etc,
        vac=vac,
        tcpi=tcpi,
        health=classify_health(cpi, spi),
    )


# ════════════════════════════════════════════════════════════════════════════
# PRESENTATION
# ════════════════════════════════════════════════════════════════════════════

def format_index(value: float) -> str:
    """CPI/SPI for display: 2 decimals, '-' while not calculable"""
    if value > 0:
        return f"{value:.2f}"
    return NOT_AVAILABLE


def format_ratio(value: Optional[float]) -> str:
    """TCPI or portfolio CPI: 2 decimals, "-" for the undefined sentinel"""
    if value is None:
        return NOT_AVAILABLE
    return f"{value:.2f}"


def display_etc(etc: float) -> float:
    """Remaining cost shown to users never goes below 0"""
    return max(0.0, etc)


def describe_performance(cpi: float, spi: float) -> str:
    if cpi >= 1 and spi >= 1:
        return "Il progetto è sotto budget e in anticipo rispetto ai tempi"
    if cpi < 1 and spi < 1:
        return "Il progetto è in ritardo e sopra budget"
    if cpi < 1:
        return "Il progetto è sopra budget"
    return "Il progetto è in ritardo sui tempi"


def describe_cpi(cpi: float) -> str:
    if cpi >= 1:
        return f"Per ogni €1 speso, guadagni €{cpi:.2f} di valore"
    if cpi > 0:
        return f"Per ogni €1 speso, ottieni solo €{cpi:.2f} di valore"
    return "Non calcolabile - nessun costo registrato"


def describe_spi(spi: float) -> str:
    if spi >= 1:
        return f"Il progetto è in anticipo del {(spi - 1) * 100:.0f}%"
    if spi > 0:
        return f"Il progetto è in ritardo del {(1 - spi) * 100:.0f}%"
    return "Non calcolabile - nessun valore pianificato"


def evm_report(snapshot: ProjectSnapshot) -> Dict:
    """JSON-ready EVM payload for the project detail view"""
    result = compute(snapshot)
    return {
        "inputs": {
            "bac": snapshot.budget,
            "ac": snapshot.actual_cost,
            "pv": snapshot.planned_value,
            "ev": snapshot.earned_value,
            "progress_percentage": snapshot.progress_percentage,
        },
        "metrics": result.model_dump(mode="json"),
        "health": {
            "status": result.health.value,
            "label": HEALTH_LABELS[result.health],
            "message": describe_performance(result.cpi, result.spi),
        },
        "display": {
            "cpi": format_index(result.cpi),
            "spi": format_index(result.spi),
            "tcpi": format_ratio(result.tcpi),
            "etc": display_etc(result.etc),
            "cpi_message": describe_cpi(result.cpi),
            "spi_message": describe_spi(result.spi),
            "over_budget_forecast": result.eac > snapshot.budget,
        },
    }


# ════════════════════════════════════════════════════════════════════════════
# PORTFOLIO
# ════════════════════════════════════════════════════════════════════════════

def portfolio_stats(projects: Iterable[dict]) -> Dict:
    """
    Aggregates for the project list header.

    avg_cpi is the portfolio CPI (sum EV / sum AC), None when no cost
    has been recorded on any project.
    """
    projects = list(projects)
    by_status = {status: 0 for status in VALID_PROJECT_STATUSES}
    health_breakdown = {status.value: 0 for status in HealthStatus}
    total_budget = 0.0
    total_ev = 0.0
    total_ac = 0.0

    for project in projects:
        status = project.get("status")
        if status in by_status:
            by_status[status] += 1

        snapshot = ProjectSnapshot.from_document(project)
        total_budget += snapshot.budget
        total_ev += snapshot.earned_value
        total_ac += snapshot.actual_cost
        health_breakdown[compute(snapshot).health.value] += 1

    avg_cpi = total_ev / total_ac if total_ac > 0 else None

    return {
        "total": len(projects),
        **by_status,
        "total_budget": total_budget,
        "avg_cpi": avg_cpi,
        "avg_cpi_display": format_ratio(avg_cpi),
        "health_breakdown": health_breakdown,
    }
