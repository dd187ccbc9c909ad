from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from contentdeck.billing.plans import get_plan, load_plans
from contentdeck.core.config import get_settings
from contentdeck.core.errors import ValidationError


def test_load_plans_reads_all_known_plans() -> None:
    plans = load_plans()

    assert set(plans) == {"trial", "basic", "pro", "5day"}
    assert plans["pro"].storage_mb == 2048
    assert plans["basic"].tasks == 100
    assert plans["basic"].duration_days is None


def test_plan_expiry_uses_duration_days() -> None:
    started = datetime(2024, 1, 1, tzinfo=timezone.utc)

    assert get_plan("5day").expires_at(started) == started + timedelta(days=60)
    assert get_plan("basic").expires_at(started) is None


def test_get_plan_normalizes_and_rejects_unknown() -> None:
    assert get_plan(" PRO ").name == "pro"
    with pytest.raises(ValidationError):
        get_plan("enterprise")


def test_load_plans_rejects_invalid_limits(monkeypatch, tmp_path) -> None:
    plans_file = tmp_path / "plans.yaml"
    plans_file.write_text("trial:\n  storage_mb: lots\n  tasks: 3\n", encoding="utf-8")
    monkeypatch.setenv("PLANS_FILE_PATH", str(plans_file))
    get_settings.cache_clear()
    load_plans.cache_clear()

    with pytest.raises(ValueError):
        load_plans()


def test_load_plans_requires_a_known_plan(monkeypatch, tmp_path) -> None:
    plans_file = tmp_path / "plans.yaml"
    plans_file.write_text("gold:\n  storage_mb: 1\n  tasks: 1\n", encoding="utf-8")
    monkeypatch.setenv("PLANS_FILE_PATH", str(plans_file))
    get_settings.cache_clear()
    load_plans.cache_clear()

    with pytest.raises(ValueError):
        load_plans()
