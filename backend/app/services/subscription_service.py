"""구독(결제) 서비스 레이어입니다.

구독 행은 사용자의 ``stripe_customer_id``로 찾습니다. 구독이 없는 경우는 오류가 아니라
``200 No subscription found``로 응답하고, 저장소/결제사 오류는 400으로 변환합니다.
결제사 웹훅으로 들어오는 상태 동기화는 이 모듈의 범위가 아닙니다.
"""

import logging
from typing import Any, Dict, Optional
from fastapi import HTTPException
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from app.config import settings
from app.models.subscription import Subscription
from app.models.user import User
from app.schemas.subscription import BillingModeChange, EncryptedBody, PlanChange
from app.services.billing_client import BillingClient
from app.utils.crypto import decrypt_payload

logger = logging.getLogger(__name__)

PORTAL_LOCALES = ("en", "fr")


def find_subscription(db: Session, user: User) -> Optional[Subscription]:
    if not user.stripe_customer_id:
        return None
    return (
        db.query(Subscription)
        .filter(Subscription.stripe_customer_id == user.stripe_customer_id)
        .order_by(Subscription.created_at.desc())
        .first()
    )


def _read_body(body: EncryptedBody) -> Dict[str, Any]:
    if body.encrypted_data:
        data = decrypt_payload(body.encrypted_data, settings.API_ENCRYPTION_KEY)
        if not isinstance(data, dict):
            raise ValueError("Encrypted payload must be an object")
        return data
    return dict(body.model_extra or {})


def get_subscription(db: Session, user: User) -> Optional[Subscription]:
    try:
        return find_subscription(db, user)
    except SQLAlchemyError as exc:
        logger.exception("[billing] failed to load subscription for user %s", user.id)
        raise HTTPException(status_code=400, detail=f"Error retrieving subscription {exc}")


def change_plan(db: Session, user: User, body: EncryptedBody) -> bool:
    """구독의 첫 번째 항목 가격을 billing 주기/금액이 일치하는 Stripe 가격으로 바꾼다.

    구독이 없으면 False를 반환한다.
    """
    try:
        sub = find_subscription(db, user)
        if sub is None:
            return False
        change = PlanChange.model_validate(_read_body(body))
        cents = round(float(change.price) * 100)

        client = BillingClient()
        item_id = client.first_item_id(sub.stripe_subscription_id)
        price = next(
            (p for p in client.recurring_prices(change.billing) if p["unit_amount"] == cents),
            None,
        )
        if price is None:
            raise HTTPException(status_code=400, detail="No price found for the selected plan")
        client.update_subscription(sub.stripe_subscription_id, items=[{"id": item_id, "price": price["id"]}])
    except HTTPException:
        raise
    except (SQLAlchemyError, RuntimeError, ValueError, OverflowError) as exc:
        logger.warning("[billing] plan change failed for user %s: %s", user.id, exc)
        raise HTTPException(status_code=400, detail=f"Error updating subscription {exc}")
    logger.info("[billing] subscription %s moved to %s/%s", sub.id, change.billing, change.price)
    return True


def change_billing_mode(db: Session, user: User, body: EncryptedBody) -> bool:
    """auto는 자동 결제, manual은 인보이스 발송(지불 기한 포함)으로 전환한다."""
    try:
        payload = _read_body(body)
        change = BillingModeChange.model_validate(payload)
    except (ValidationError, ValueError):
        raise HTTPException(status_code=400, detail="Billing mode is required")

    try:
        sub = find_subscription(db, user)
        if sub is None:
            return False
        params: Dict[str, Any] = {"collection_method": "charge_automatically"}
        if change.mode == "manual":
            params = {
                "collection_method": "send_invoice",
                "days_until_due": settings.SUBSCRIPTION_INVOICE_DAYS_UNTIL_DUE,
            }
        BillingClient().update_subscription(sub.stripe_subscription_id, **params)
        sub.auto_renew = change.mode == "auto"
        db.commit()
    except (SQLAlchemyError, RuntimeError) as exc:
        db.rollback()
        logger.warning("[billing] billing mode change failed for user %s: %s", user.id, exc)
        raise HTTPException(status_code=400, detail=f"Error updating subscription {exc}")
    logger.info("[billing] subscription %s billing mode set to %s", sub.id, change.mode)
    return True


def cancellation_link(db: Session, user: User) -> Optional[str]:
    """구독 해지 흐름으로 바로 들어가는 고객 포털 링크를 만든다. 구독이 없으면 None."""
    try:
        sub = find_subscription(db, user)
        if sub is None:
            return None
        lang = user.lang if user.lang in PORTAL_LOCALES else "en"
        base = settings.FRONTEND_URL.rstrip("/")
        return BillingClient().create_portal_session(
            customer=user.stripe_customer_id,
            return_url=f"{base}/{lang}/settings?tab=myplan",
            locale=lang,
            flow_data={
                "type": "subscription_cancel",
                "subscription_cancel": {"subscription": sub.stripe_subscription_id},
                "after_completion": {
                    "type": "redirect",
                    "redirect": {"return_url": f"{base}/{lang}/success?tab=cancelSubscription"},
                },
            },
        )
    except (SQLAlchemyError, RuntimeError) as exc:
        logger.warning("[billing] cancel link failed for user %s: %s", user.id, exc)
        raise HTTPException(status_code=400, detail=f"Error generating link {exc}")
