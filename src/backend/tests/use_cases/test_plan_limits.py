from __future__ import annotations

import pytest

from src.backend.certify.use_cases.plan_limits import (
    DEFAULT_PLAN_LIMITS_PATH,
    PlanLimits,
    load_plan_limits,
)


def test_default_table_matches_shipped_yaml() -> None:
    assert DEFAULT_PLAN_LIMITS_PATH.exists()
    limits = load_plan_limits()
    assert limits.limits == {"starter": 10, "growth": 50, "professional": 200}
    assert limits.default_plan == "starter"


def test_resolve() -> None:
    limits = PlanLimits()
    assert limits.resolve("growth") == ("growth", 50)
    assert limits.resolve(None) == ("starter", 10)
    assert limits.resolve("  ") == ("starter", 10)
    assert limits.resolve("legacy") == ("legacy", 10)


def test_load_from_yaml(tmp_path) -> None:
    path = tmp_path / "limits.yaml"
    path.write_text(
        "plan_limits:\n"
        "  default_plan: free\n"
        "  plans:\n"
        "    free: 2\n"
        "    team: '25'\n"
    )
    limits = load_plan_limits(path)
    assert limits.limits == {"free": 2, "team": 25}
    assert limits.resolve(None) == ("free", 2)
    assert limits.lowest_limit == 2


def test_missing_file_falls_back_to_builtin_limits(tmp_path) -> None:
    limits = load_plan_limits(tmp_path / "nope.yaml")
    assert limits == PlanLimits()


def test_invalid_limit_is_rejected(tmp_path) -> None:
    path = tmp_path / "limits.yaml"
    path.write_text("plan_limits:\n  plans:\n    starter: lots\n")
    with pytest.raises(ValueError, match="starter"):
        load_plan_limits(path)

    path.write_text("plan_limits:\n  plans:\n    starter: -1\n")
    with pytest.raises(ValueError, match=">= 0"):
        load_plan_limits(path)
