from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

import requests
from django.conf import settings

log = logging.getLogger(__name__)

WEBHOOK_HEADERS = {
    "auth_algo": "paypal-auth-algo",
    "cert_url": "paypal-cert-url",
    "transmission_id": "paypal-transmission-id",
    "transmission_sig": "paypal-transmission-sig",
    "transmission_time": "paypal-transmission-time",
}


class PayPalError(Exception):
    """Any failed round-trip to PayPal (transport, HTTP status or body)."""


class PayPalConfigError(PayPalError):
    pass


# -----------------------------
# Payload extraction
# -----------------------------
def _dig(raw: Any, *path: Any) -> Any:
    """
    Walk nested dicts/lists, returning None as soon as a step is missing.
    """
    cur = raw
    for key in path:
        if isinstance(key, int):
            if not isinstance(cur, list) or len(cur) <= key:
                return None
            cur = cur[key]
        else:
            if not isinstance(cur, dict):
                return None
            cur = cur.get(key)
    return cur


def _str_or_empty(value: Any) -> str:
    return value if isinstance(value, str) else ""


@dataclass(frozen=True)
class CaptureResult:
    capture_id: str
    payment_source: str
    payer_name: str
    raw: Dict[str, Any]

    @classmethod
    def from_response(cls, raw: Dict[str, Any]) -> "CaptureResult":
        """
        capture id: first capture of the first purchase unit, else the order
        id, else a synthetic CAP-<epoch ms>.
        """
        capture_id = (
            _str_or_empty(_dig(raw, "purchase_units", 0, "payments", "captures", 0, "id"))
            or _str_or_empty(_dig(raw, "id"))
            or f"CAP-{int(time.time() * 1000)}"
        )

        source = _dig(raw, "payment_source")
        payment_source = next(iter(source), "") if isinstance(source, dict) else ""

        payer_name = (
            _str_or_empty(_dig(raw, "payer", "name", "given_name"))
            or _str_or_empty(_dig(raw, "payer", "name", "surname"))
            or "Customer"
        )

        return cls(
            capture_id=capture_id,
            payment_source=payment_source or "paypal",
            payer_name=payer_name,
            raw=raw,
        )


@dataclass(frozen=True)
class WebhookEvent:
    event_type: str
    capture_id: str
    order_id: str
    raw: Dict[str, Any]

    @classmethod
    def from_body(cls, raw: Dict[str, Any]) -> "WebhookEvent":
        return cls(
            event_type=_str_or_empty(_dig(raw, "event_type")),
            capture_id=_str_or_empty(_dig(raw, "resource", "id")),
            order_id=_str_or_empty(_dig(raw, "resource", "supplementary_data", "related_ids", "order_id")),
            raw=raw,
        )


# -----------------------------
# Client
# -----------------------------
class PayPalClient:
    """
    Thin synchronous wrapper around the PayPal REST API.
    A fresh OAuth token is fetched for every operation and nothing is retried.
    """

    def __init__(
        self,
        *,
        client_id: str,
        client_secret: str,
        env: str = "live",
        timeout: float = 20,
        session: Optional[requests.Session] = None,
    ):
        self.client_id = (client_id or "").strip()
        self.client_secret = (client_secret or "").strip()
        self.env = env
        self.timeout = timeout
        # None: each call goes through requests' module functions, which open
        # and close their own session.
        self.session = session

    @classmethod
    def from_settings(cls) -> "PayPalClient":
        return cls(
            client_id=getattr(settings, "PAYPAL_CLIENT_ID", ""),
            client_secret=getattr(settings, "PAYPAL_CLIENT_SECRET", ""),
            env=getattr(settings, "PAYPAL_ENV", "live"),
            timeout=getattr(settings, "PAYPAL_TIMEOUT", 20),
        )

    @property
    def http(self):
        return self.session if self.session is not None else requests

    @property
    def base_url(self) -> str:
        if self.env == "sandbox":
            return "https://api-m.sandbox.paypal.com"
        return "https://api-m.paypal.com"

    def get_access_token(self) -> str:
        if not self.client_id or not self.client_secret:
            raise PayPalConfigError("PayPal credentials are missing in environment variables.")

        try:
            resp = self.http.post(
                f"{self.base_url}/v1/oauth2/token",
                auth=(self.client_id, self.client_secret),
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                data="grant_type=client_credentials",
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise PayPalError(f"Failed to fetch PayPal access token: {e!r}") from e

        if not resp.ok:
            raise PayPalError(f"Failed to fetch PayPal access token: {resp.text}")

        token = _str_or_empty(self._json(resp, "/v1/oauth2/token").get("access_token"))
        if not token:
            raise PayPalError("PayPal token response carried no access_token")
        return token

    def _json(self, resp: requests.Response, endpoint: str) -> Dict[str, Any]:
        text = resp.text or ""
        if not text:
            return {}
        try:
            data = json.loads(text)
        except ValueError as e:
            raise PayPalError(f"Non-JSON response from PayPal ({endpoint}, HTTP {resp.status_code})") from e
        return data if isinstance(data, dict) else {}

    def _request(self, endpoint: str, method: str, body: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        access_token = self.get_access_token()
        try:
            resp = self.http.request(
                method,
                f"{self.base_url}{endpoint}",
                headers={
                    "Authorization": f"Bearer {access_token}",
                    "Content-Type": "application/json",
                },
                json=body,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            log.warning("PayPal %s %s failed: %r", method, endpoint, e)
            raise PayPalError(f"PayPal API error ({endpoint}): {e!r}") from e

        if not resp.ok:
            log.warning("PayPal %s %s -> HTTP %s", method, endpoint, resp.status_code)
            raise PayPalError(f"PayPal API error ({endpoint}): {resp.text}")

        return self._json(resp, endpoint)

    def create_order(self, *, amount: str, currency: str, description: str, reference_id: str) -> str:
        data = self._request(
            "/v2/checkout/orders",
            "POST",
            {
                "intent": "CAPTURE",
                "purchase_units": [
                    {
                        "description": description,
                        "custom_id": reference_id,
                        "amount": {"currency_code": currency, "value": amount},
                    }
                ],
                "application_context": {
                    "shipping_preference": "NO_SHIPPING",
                    "user_action": "PAY_NOW",
                },
            },
        )
        order_id = _str_or_empty(data.get("id"))
        if not order_id:
            raise PayPalError("PayPal create-order response carried no id")
        return order_id

    def capture_order(self, paypal_order_id: str) -> CaptureResult:
        data = self._request(f"/v2/checkout/orders/{paypal_order_id}/capture", "POST", {})
        return CaptureResult.from_response(data)

    def verify_webhook_signature(
        self, *, headers: Mapping[str, str], event: Dict[str, Any], webhook_id: str
    ) -> bool:
        """
        Delegates verification to PayPal; no local signature checks.
        `headers` must be case-insensitive (Django's request.headers is).
        """
        payload: Dict[str, Any] = {key: headers.get(header) for key, header in WEBHOOK_HEADERS.items()}
        payload["webhook_id"] = webhook_id
        payload["webhook_event"] = event

        data = self._request("/v1/notifications/verify-webhook-signature", "POST", payload)
        return data.get("verification_status") == "SUCCESS"
