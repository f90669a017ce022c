"""Subscription 기능 API 라우터입니다. 요청을 검증하고 서비스 레이어로 비즈니스 로직을 위임합니다."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.database import get_db
from app.schemas.subscription import EncryptedBody, SubscriptionOut
from app.services import subscription_service
from app.middleware.auth_middleware import get_current_user
from app.models.user import User

router = APIRouter(prefix="/api/subscriptions", tags=["subscriptions"])


def _no_subscription() -> dict:
    return {"message": "No subscription found", "success": True}


@router.get("")
def get_subscription(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    sub = subscription_service.get_subscription(db, current_user)
    if sub is None:
        return _no_subscription()
    return {
        "message": "Subscription retrieved",
        "success": True,
        "data": SubscriptionOut.model_validate(sub).model_dump(by_alias=True, mode="json"),
    }


@router.put("/plan")
def change_plan(
    body: EncryptedBody,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if not subscription_service.change_plan(db, current_user, body):
        return _no_subscription()
    return {"message": "Subscription updated", "success": True}


@router.put("/billingMode")
def change_billing_mode(
    body: EncryptedBody,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if not subscription_service.change_billing_mode(db, current_user, body):
        return _no_subscription()
    return {"message": "Subscription updated", "success": True}


@router.get("/cancel")
def cancel_subscription(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    link = subscription_service.cancellation_link(db, current_user)
    if link is None:
        return _no_subscription()
    return {"message": "Link generated", "success": True, "link": link}
