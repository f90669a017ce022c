"""구독 조회/요금제 변경/결제 방식 변경/해지 링크 API 테스트입니다."""

from datetime import datetime
from unittest.mock import patch, MagicMock

import pytest

from app.config import settings
from app.models.subscription import Subscription
from app.utils.crypto import encrypt_payload
from tests.conftest import auth_headers


@pytest.fixture
def subscribed_owner(db, seed_users):
    owner = seed_users["owner"]
    owner.stripe_customer_id = "cus_owner"
    owner.lang = "fr"
    sub = Subscription(
        plan="individual",
        reference_id=owner.id,
        stripe_customer_id="cus_owner",
        stripe_subscription_id="sub_123",
        status="active",
        billing="month",
        price=9.99,
        period_start=datetime(2024, 3, 1),
    )
    db.add(sub)
    db.commit()
    db.refresh(sub)
    return sub


def _mock_billing(MockClient):
    mock_instance = MagicMock()
    mock_instance.first_item_id.return_value = "si_1"
    mock_instance.recurring_prices.return_value = [
        {"id": "price_small", "unit_amount": 999},
        {"id": "price_team", "unit_amount": 2999},
    ]
    mock_instance.create_portal_session.return_value = "https://billing.stripe.com/p/session_1"
    MockClient.return_value = mock_instance
    return mock_instance


def test_get_subscription(client, subscribed_owner):
    resp = client.get("/api/subscriptions", headers=auth_headers(client, "owner@example.com"))
    assert resp.status_code == 200
    body = resp.json()
    assert body["message"] == "Subscription retrieved"
    assert body["data"]["stripeSubscriptionId"] == "sub_123"
    assert body["data"]["autoRenew"] is True


def test_no_subscription_is_success_on_every_endpoint(client, seed_users):
    headers = auth_headers(client, "outsider@example.com")
    expected = {"message": "No subscription found", "success": True}
    with patch("app.services.subscription_service.BillingClient") as MockClient:
        assert client.get("/api/subscriptions", headers=headers).json() == expected
        assert client.put("/api/subscriptions/plan", json={"billing": "month", "price": 9.99}, headers=headers).json() == expected
        assert client.put("/api/subscriptions/billingMode", json={"mode": "auto"}, headers=headers).json() == expected
        assert client.get("/api/subscriptions/cancel", headers=headers).json() == expected
    MockClient.assert_not_called()


def test_subscription_endpoints_require_session(client, seed_users):
    assert client.get("/api/subscriptions").status_code == 401
    assert client.get("/api/subscriptions/cancel").status_code == 401


def test_change_plan_with_encrypted_payload(client, subscribed_owner):
    token = encrypt_payload({"billing": "month", "price": "29.99"}, settings.API_ENCRYPTION_KEY)
    with patch("app.services.subscription_service.BillingClient") as MockClient:
        mock_instance = _mock_billing(MockClient)
        resp = client.put(
            "/api/subscriptions/plan",
            json={"encryptedData": token},
            headers=auth_headers(client, "owner@example.com"),
        )
    assert resp.status_code == 200, resp.text
    assert resp.json() == {"message": "Subscription updated", "success": True}
    mock_instance.recurring_prices.assert_called_once_with("month")
    mock_instance.update_subscription.assert_called_once_with(
        "sub_123", items=[{"id": "si_1", "price": "price_team"}],
    )


def test_change_plan_unknown_price_is_rejected(client, subscribed_owner):
    with patch("app.services.subscription_service.BillingClient") as MockClient:
        mock_instance = _mock_billing(MockClient)
        resp = client.put(
            "/api/subscriptions/plan",
            json={"billing": "month", "price": 12},
            headers=auth_headers(client, "owner@example.com"),
        )
    assert resp.status_code == 400
    assert resp.json()["success"] is False
    mock_instance.update_subscription.assert_not_called()


def test_change_plan_bad_payload_and_stripe_failure(client, subscribed_owner):
    headers = auth_headers(client, "owner@example.com")
    with patch("app.services.subscription_service.BillingClient") as MockClient:
        mock_instance = _mock_billing(MockClient)
        garbled = client.put("/api/subscriptions/plan", json={"encryptedData": "bm90IGVuY3J5cHRlZA=="}, headers=headers)
        assert garbled.status_code == 400
        assert garbled.json()["message"].startswith("Error updating subscription")

        mock_instance.first_item_id.side_effect = RuntimeError("Stripe call failed (subscriptions.retrieve): boom")
        failed = client.put("/api/subscriptions/plan", json={"billing": "year", "price": 99}, headers=headers)
        assert failed.status_code == 400


def test_change_billing_mode_manual_sends_invoices(client, db, subscribed_owner):
    token = encrypt_payload({"mode": "manual"}, settings.API_ENCRYPTION_KEY)
    with patch("app.services.subscription_service.BillingClient") as MockClient:
        mock_instance = _mock_billing(MockClient)
        resp = client.put(
            "/api/subscriptions/billingMode",
            json={"encryptedData": token},
            headers=auth_headers(client, "owner@example.com"),
        )
    assert resp.status_code == 200, resp.text
    mock_instance.update_subscription.assert_called_once_with(
        "sub_123",
        collection_method="send_invoice",
        days_until_due=settings.SUBSCRIPTION_INVOICE_DAYS_UNTIL_DUE,
    )
    sub_id = subscribed_owner.id
    db.expire_all()
    assert db.get(Subscription, sub_id).auto_renew is False


def test_change_billing_mode_auto(client, subscribed_owner):
    with patch("app.services.subscription_service.BillingClient") as MockClient:
        mock_instance = _mock_billing(MockClient)
        resp = client.put(
            "/api/subscriptions/billingMode",
            json={"mode": "auto"},
            headers=auth_headers(client, "owner@example.com"),
        )
    assert resp.status_code == 200
    mock_instance.update_subscription.assert_called_once_with("sub_123", collection_method="charge_automatically")


def test_change_billing_mode_requires_valid_mode(client, subscribed_owner):
    headers = auth_headers(client, "owner@example.com")
    for payload in ({}, {"mode": "yearly"}, {"encryptedData": "garbage"}):
        resp = client.put("/api/subscriptions/billingMode", json=payload, headers=headers)
        assert resp.status_code == 400
        assert resp.json() == {"message": "Billing mode is required", "success": False}


def test_cancel_returns_portal_link(client, subscribed_owner):
    with patch("app.services.subscription_service.BillingClient") as MockClient:
        mock_instance = _mock_billing(MockClient)
        resp = client.get("/api/subscriptions/cancel", headers=auth_headers(client, "owner@example.com"))
    assert resp.status_code == 200
    assert resp.json() == {
        "message": "Link generated",
        "success": True,
        "link": "https://billing.stripe.com/p/session_1",
    }
    kwargs = mock_instance.create_portal_session.call_args.kwargs
    assert kwargs["customer"] == "cus_owner"
    assert kwargs["locale"] == "fr"
    assert kwargs["return_url"] == f"{settings.FRONTEND_URL}/fr/settings?tab=myplan"
    assert kwargs["flow_data"]["subscription_cancel"] == {"subscription": "sub_123"}


def test_cancel_link_failure_is_bad_request(client, subscribed_owner):
    with patch("app.services.subscription_service.BillingClient") as MockClient:
        mock_instance = _mock_billing(MockClient)
        mock_instance.create_portal_session.side_effect = RuntimeError("Stripe call failed: down")
        resp = client.get("/api/subscriptions/cancel", headers=auth_headers(client, "owner@example.com"))
    assert resp.status_code == 400
    assert resp.json()["message"].startswith("Error generating link")
