from datetime import date, datetime, time
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    SmallInteger,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.services.slot_generator import AvailabilityRuleData


class AvailabilityRule(Base):
    """Bookable hours for an owner: a recurring weekday or a one-off date override.

    ``weekday`` follows the 0 = Sunday ... 6 = Saturday convention used by the
    booking widget. ``windows`` is a list of ``{"start": "HH:MM", "end": "HH:MM"}``.
    """

    __tablename__ = "availability_rules"
    __table_args__ = (
        UniqueConstraint("user_id", "weekday", name="uq_availability_rules_user_weekday"),
        UniqueConstraint("user_id", "specific_date", name="uq_availability_rules_user_date"),
        CheckConstraint("(weekday IS NULL) <> (specific_date IS NULL)", name="weekday_or_date"),
        CheckConstraint("weekday IS NULL OR weekday BETWEEN 0 AND 6", name="weekday_range"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    weekday: Mapped[int | None] = mapped_column(SmallInteger, nullable=True)
    specific_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    windows: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    timezone: Mapped[str] = mapped_column(String(64), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    owner = relationship("User", back_populates="availability_rules")

    def to_rule_data(self) -> AvailabilityRuleData:
        return AvailabilityRuleData(
            weekday=self.weekday,
            specific_date=self.specific_date,
            windows=tuple(
                (time.fromisoformat(window["start"]), time.fromisoformat(window["end"]))
                for window in self.windows or []
            ),
            timezone=self.timezone,
            is_active=self.is_active,
        )
