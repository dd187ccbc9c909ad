"""Plan catalogue loading."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from functools import lru_cache
from pathlib import Path
from typing import Dict, Optional

import yaml

from contentdeck.core.config import get_settings
from contentdeck.core.errors import ValidationError


PLAN_NAMES = ("trial", "basic", "pro", "5day")


@dataclass(frozen=True)
class PlanLimits:
    name: str
    storage_mb: int
    tasks: int
    duration_days: Optional[int] = None

    def expires_at(self, started_at: datetime) -> Optional[datetime]:
        if self.duration_days is None:
            return None
        return started_at + timedelta(days=self.duration_days)


def _resolve_plan_path() -> Path:
    settings = get_settings()
    configured = Path(settings.plans_file_path)
    if configured.is_absolute():
        return configured
    return Path.cwd() / configured


@lru_cache(maxsize=1)
def load_plans() -> Dict[str, PlanLimits]:
    plan_path = _resolve_plan_path()
    with plan_path.open("r", encoding="utf-8") as file:
        content = yaml.safe_load(file) or {}
    if not isinstance(content, dict):
        raise ValueError("Invalid plans file format")

    plans: Dict[str, PlanLimits] = {}
    for raw_name, raw_limits in content.items():
        name = str(raw_name)
        if name not in PLAN_NAMES or not isinstance(raw_limits, dict):
            continue
        storage_mb = raw_limits.get("storage_mb")
        tasks = raw_limits.get("tasks")
        duration_days = raw_limits.get("duration_days")
        if not isinstance(storage_mb, int) or not isinstance(tasks, int):
            raise ValueError(f"Plan '{name}' requires integer storage_mb and tasks")
        if storage_mb < 0 or tasks < 0:
            raise ValueError(f"Plan '{name}' limits must not be negative")
        if duration_days is not None and (not isinstance(duration_days, int) or duration_days <= 0):
            raise ValueError(f"Plan '{name}' duration_days must be a positive integer")
        plans[name] = PlanLimits(name=name, storage_mb=storage_mb, tasks=tasks, duration_days=duration_days)

    if not plans:
        raise ValueError("Plans file does not define any known plan")
    return plans


def get_plan(name: str) -> PlanLimits:
    normalized = (name or "").strip().lower()
    plan = load_plans().get(normalized)
    if plan is None:
        raise ValidationError(
            f"Unknown plan: {name}",
            detail={"plan": name, "available": sorted(load_plans())},
        )
    return plan
