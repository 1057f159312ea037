"""Subscription tier -> staff limit table."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

DEFAULT_PLAN = "starter"
DEFAULT_STAFF_LIMITS = {
    "starter": 10,
    "growth": 50,
    "professional": 200,
}


def _repo_root_from_this_file() -> Path:
    """plan_limits.py is at: src/backend/certify/use_cases/plan_limits.py"""
    return Path(__file__).resolve().parents[4]


DEFAULT_PLAN_LIMITS_PATH = _repo_root_from_this_file() / "data" / "plan_limits.yaml"


@dataclass(frozen=True, slots=True)
class PlanLimits:
    limits: dict[str, int] = field(default_factory=lambda: dict(DEFAULT_STAFF_LIMITS))
    default_plan: str = DEFAULT_PLAN

    @property
    def lowest_limit(self) -> int:
        return min(self.limits.values())

    def resolve(self, plan: str | None) -> tuple[str, int]:
        """Return `(plan_name, staff_limit)`.

        An unset plan is treated as the default plan; an unrecognized plan keeps
        its name (it is what the account is on) but gets the lowest limit.
        """

        name = (plan or "").strip() or self.default_plan
        limit = self.limits.get(name)
        if limit is None:
            limit = self.lowest_limit
        return name, limit


def _parse_plan_limits(raw: dict[str, Any]) -> PlanLimits:
    section = raw.get("plan_limits") or {}
    plans = section.get("plans") or {}
    limits: dict[str, int] = {}
    for name, value in plans.items():
        try:
            limit = int(value)
        except (TypeError, ValueError):
            raise ValueError(f"Staff limit for plan {name!r} must be an integer, got {value!r}")
        if limit < 0:
            raise ValueError(f"Staff limit for plan {name!r} must be >= 0")
        limits[str(name)] = limit
    if not limits:
        limits = dict(DEFAULT_STAFF_LIMITS)
    default_plan = str(section.get("default_plan") or DEFAULT_PLAN)
    return PlanLimits(limits=limits, default_plan=default_plan)


def load_plan_limits(path: str | Path | None = None) -> PlanLimits:
    """Load the tier table from YAML, falling back to the built-in table."""

    plan_path = Path(path) if path else DEFAULT_PLAN_LIMITS_PATH
    if not plan_path.exists():
        logger.warning(f"Plan limits file not found at {plan_path}; using built-in limits")
        return PlanLimits()
    with open(plan_path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}
    return _parse_plan_limits(raw)
