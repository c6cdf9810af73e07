"""Contributor KPI engine."""

from kpi_engine.models.kpi import (
    KPICalculator,
    KPIResult,
    UserActivityData,
    calculate_kpi,
    create_kpi_calculator,
    scope_to_user,
)
from kpi_engine.utils.time_windows import TimeWindowError

__all__ = [
    "KPICalculator",
    "KPIResult",
    "TimeWindowError",
    "UserActivityData",
    "calculate_kpi",
    "create_kpi_calculator",
    "scope_to_user",
]
