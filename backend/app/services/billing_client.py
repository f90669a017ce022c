"""Stripe 결제 API 호출을 감싸는 클라이언트입니다. 구독 서비스가 사용합니다."""

from typing import Any, Dict, List, Optional
from app.config import settings


class BillingClient:
    """Stripe SDK 클라이언트 (구독 조회/변경, 고객 포털 세션 생성)"""

    def __init__(self, api_key: Optional[str] = None):
        self.api_key = api_key or settings.STRIPE_SECRET_KEY
        self._sdk = None

    def _get_sdk(self):
        if self._sdk is None:
            try:
                import stripe
            except ImportError:
                raise RuntimeError("stripe is not installed.")
            self._sdk = stripe
        return self._sdk

    def _call(self, label: str, fn, *args, **kwargs):
        try:
            return fn(*args, api_key=self.api_key, **kwargs)
        except Exception as exc:
            raise RuntimeError(f"Stripe call failed ({label}): {exc}") from exc

    def first_item_id(self, subscription_id: str) -> str:
        sdk = self._get_sdk()
        sub = self._call("subscriptions.retrieve", sdk.Subscription.retrieve, subscription_id)
        items = sub["items"]["data"]
        if not items:
            raise RuntimeError(f"Stripe subscription {subscription_id} has no items")
        return items[0]["id"]

    def recurring_prices(self, interval: str) -> List[Any]:
        sdk = self._get_sdk()
        prices = self._call("prices.list", sdk.Price.list, recurring={"interval": interval})
        return list(prices["data"])

    def update_subscription(self, subscription_id: str, **params) -> Any:
        sdk = self._get_sdk()
        return self._call("subscriptions.modify", sdk.Subscription.modify, subscription_id, **params)

    def create_portal_session(self, **params: Dict[str, Any]) -> str:
        sdk = self._get_sdk()
        session = self._call("billing_portal.sessions.create", sdk.billing_portal.Session.create, **params)
        return session["url"]
