# services/membership.py
from datetime import datetime
from typing import Optional

from sqlmodel import Session, select

from models.models import UserSubscription, utcnow


class MembershipOracle:
    """Answers whether a user currently holds a premium subscription."""

    def __init__(self, session: Session):
        self.session = session

    def current_membership(self, user_id: int, now: Optional[datetime] = None) -> Optional[UserSubscription]:
        """Latest-ending subscription that has not expired yet."""
        now = now or utcnow()
        return self.session.exec(
            select(UserSubscription)
            .where(
                UserSubscription.user_id == user_id,
                UserSubscription.end_date >= now,
            )
            .order_by(UserSubscription.end_date.desc())
        ).first()

    def has_active_premium(self, user_id: int, now: Optional[datetime] = None) -> bool:
        return self.current_membership(user_id, now) is not None
