# routes/home.py
from fastapi import APIRouter, Depends

from core.dependencies import get_analytics, get_oracle
from core.security import get_current_user
from models.models import User
from schemas.analytics_schema import HomeRead
from schemas.user_schema import MembershipRead, SubscriptionRead
from services.analytics_service import AnalyticsAggregator
from services.membership import MembershipOracle

router = APIRouter(tags=["Home"])


@router.get("/home", response_model=HomeRead)
def get_home(
    current_user: User = Depends(get_current_user),
    analytics: AnalyticsAggregator = Depends(get_analytics),
):
    return analytics.home(current_user)


@router.get("/subscriptions/current", response_model=MembershipRead)
def get_current_membership(
    current_user: User = Depends(get_current_user),
    oracle: MembershipOracle = Depends(get_oracle),
):
    """Latest non-expired subscription of the caller, if any."""
    subscription = oracle.current_membership(current_user.id)
    return MembershipRead(
        is_premium_user=subscription is not None,
        subscription=SubscriptionRead.model_validate(subscription) if subscription else None,
    )
