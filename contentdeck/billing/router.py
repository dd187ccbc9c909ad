"""Subscription and usage API routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from contentdeck.api.context import AppContext
from contentdeck.auth.dependencies import get_context, require_user
from contentdeck.schemas.accounts import PlanChangeRequest, SubscriptionResponse
from contentdeck.schemas.usage import UsageMetricsResponse, UtilizationResponse
from contentdeck.storage.entities import Subscription, User


router = APIRouter(tags=["billing"])


def _subscription_response(subscription: Subscription) -> SubscriptionResponse:
    return SubscriptionResponse(
        id=subscription.id,
        user_id=subscription.user_id,
        plan=subscription.plan,
        status=subscription.status,
        expires_at=subscription.expires_at,
        storage=subscription.storage,
        tasks=subscription.tasks,
    )


@router.get("/subscription", response_model=SubscriptionResponse)
def get_subscription(
    user: User = Depends(require_user),
    context: AppContext = Depends(get_context),
) -> SubscriptionResponse:
    return _subscription_response(context.accounts.get_subscription(user.id))


@router.put("/subscription/plan", response_model=SubscriptionResponse)
def change_plan(
    payload: PlanChangeRequest,
    user: User = Depends(require_user),
    context: AppContext = Depends(get_context),
) -> SubscriptionResponse:
    return _subscription_response(context.accounts.change_plan(user.id, payload.plan))


@router.get("/usage-metrics", response_model=UsageMetricsResponse)
def get_usage_metrics(
    user: User = Depends(require_user),
    context: AppContext = Depends(get_context),
) -> UsageMetricsResponse:
    context.accounts.refresh_subscription_status(user.id)
    metrics = context.accountant.ensure_metrics(user.id)
    utilization = context.accountant.get_utilization(user.id)
    return UsageMetricsResponse(
        user_id=user.id,
        storage_used=metrics.storage_used,
        tasks_used=metrics.tasks_used,
        utilization=UtilizationResponse(
            storage_pct=utilization.storage_pct,
            tasks_pct=utilization.tasks_pct,
        ),
    )
