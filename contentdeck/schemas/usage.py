"""Schemas for usage metrics endpoints."""

from __future__ import annotations

from pydantic import BaseModel


class UtilizationResponse(BaseModel):
    storage_pct: float
    tasks_pct: float


class UsageMetricsResponse(BaseModel):
    user_id: int
    storage_used: int
    tasks_used: int
    utilization: UtilizationResponse
