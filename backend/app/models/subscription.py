"""Subscription(결제 구독) 도메인의 SQLAlchemy 모델 정의입니다."""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Boolean, Integer, Float, Index
from app.database import Base


class Subscription(Base):
    __tablename__ = "subscriptions"

    id = Column(String(36), primary_key=True, default=lambda: uuid.uuid4().hex)
    plan = Column(String(50), nullable=False)  # individual/team
    reference_id = Column(String(36))  # 구독을 시작한 사용자 id
    stripe_customer_id = Column(String(100), nullable=True)
    stripe_subscription_id = Column(String(100), nullable=True)
    status = Column(String(30), default="incomplete")
    period_start = Column(DateTime, nullable=True)
    period_end = Column(DateTime, nullable=True)
    cancel_at_period_end = Column(Boolean, default=False)
    seats = Column(Integer, nullable=True)
    trial_start = Column(DateTime, nullable=True)
    trial_end = Column(DateTime, nullable=True)
    auto_renew = Column(Boolean, default=True)
    billing = Column(String(10), nullable=True)  # month/year
    price = Column(Float, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        Index("idx_subscription_customer", "stripe_customer_id"),
    )
