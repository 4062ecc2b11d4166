# user_schema.py
from pydantic import BaseModel, ConfigDict
from typing import Optional
from datetime import datetime


class UserPublic(BaseModel):
    """User fields safe to show to other workspace members."""

    id: int
    username: str
    email: str
    avatar: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class SubscriptionRead(BaseModel):
    id: int
    plan_title: str
    start_date: datetime
    end_date: datetime
    amount_paid: float

    model_config = ConfigDict(from_attributes=True)


class MembershipRead(BaseModel):
    is_premium_user: bool
    subscription: Optional[SubscriptionRead] = None
