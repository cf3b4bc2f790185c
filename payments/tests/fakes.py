from typing import Any, Dict, List, Optional

from orders.models import Order
from payments.gateway import CaptureResult, PayPalError


class FakePayPal:
    """In-memory stand-in for PayPalClient."""

    def __init__(self, *, verify: bool = True):
        self.verify = verify
        self.created: List[Dict[str, Any]] = []
        self.captured: List[str] = []
        self.verifications: List[Dict[str, Any]] = []
        self.fail_create = False
        self.fail_capture = False
        self._seq = 0

    def create_order(self, *, amount: str, currency: str, description: str, reference_id: str) -> str:
        if self.fail_create:
            raise PayPalError("PayPal API error (/v2/checkout/orders): boom")
        self._seq += 1
        order_id = f"PAYPAL-{self._seq:04d}"
        self.created.append(
            {"id": order_id, "amount": amount, "currency": currency, "description": description, "reference_id": reference_id}
        )
        return order_id

    def capture_order(self, paypal_order_id: str) -> CaptureResult:
        if self.fail_capture:
            raise PayPalError("PayPal API error (capture): ORDER_ALREADY_CAPTURED")
        self.captured.append(paypal_order_id)
        return CaptureResult.from_response(capture_payload(paypal_order_id))

    def verify_webhook_signature(self, *, headers, event, webhook_id) -> bool:
        self.verifications.append({"headers": dict(headers), "event": event, "webhook_id": webhook_id})
        return self.verify


class RecordingNotifier:
    def __init__(self, result: bool = True, error: Optional[Exception] = None):
        self.result = result
        self.error = error
        self.calls: List[int] = []
        self.on_deliver = None

    def deliver(self, order: Order, product) -> bool:
        self.calls.append(order.pk)
        if self.on_deliver is not None:
            self.on_deliver(order)
        if self.error is not None:
            raise self.error
        return self.result


def capture_id_for(paypal_order_id: str) -> str:
    return f"CAP-{paypal_order_id}"


def capture_payload(paypal_order_id: str) -> Dict[str, Any]:
    return {
        "id": paypal_order_id,
        "status": "COMPLETED",
        "payment_source": {"paypal": {"email_address": "buyer@example.com"}},
        "payer": {"name": {"given_name": "Ada", "surname": "Lovelace"}},
        "purchase_units": [
            {"payments": {"captures": [{"id": capture_id_for(paypal_order_id), "status": "COMPLETED"}]}}
        ],
    }


def capture_completed_event(capture_id: str = "", order_id: str = "") -> Dict[str, Any]:
    resource: Dict[str, Any] = {"id": capture_id, "status": "COMPLETED"}
    if order_id:
        resource["supplementary_data"] = {"related_ids": {"order_id": order_id}}
    return {"id": "WH-1", "event_type": "PAYMENT.CAPTURE.COMPLETED", "resource": resource}
