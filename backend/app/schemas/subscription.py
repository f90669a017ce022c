"""Subscription 요청/응답 계약을 위한 Pydantic 스키마입니다."""

from pydantic import ConfigDict
from pydantic.alias_generators import to_camel
from typing import Literal, Optional, Union
from datetime import datetime

from app.schemas.task import CamelModel


class SubscriptionOut(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: str
    plan: str
    reference_id: Optional[str] = None
    stripe_customer_id: Optional[str] = None
    stripe_subscription_id: Optional[str] = None
    status: Optional[str] = None
    period_start: Optional[datetime] = None
    period_end: Optional[datetime] = None
    cancel_at_period_end: Optional[bool] = None
    seats: Optional[int] = None
    trial_start: Optional[datetime] = None
    trial_end: Optional[datetime] = None
    auto_renew: Optional[bool] = None
    billing: Optional[str] = None
    price: Optional[float] = None


class PlanChange(CamelModel):
    billing: Literal["month", "year"]
    price: Union[int, float, str]


class BillingModeChange(CamelModel):
    mode: Literal["auto", "manual"]


class EncryptedBody(CamelModel):
    # encryptedData가 없으면 평문 필드를 그대로 사용한다.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    encrypted_data: Optional[str] = None
