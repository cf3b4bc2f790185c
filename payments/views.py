from __future__ import annotations

import json
import logging
from typing import Any, Dict

from django.http import HttpRequest, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from catalog.apps import get_catalog
from orders.delivery import download_url
from orders.models import Order
from .gateway import PayPalError
from .lifecycle import InvalidRequest, LifecycleError, OrderLifecycle

log = logging.getLogger(__name__)


def _lifecycle() -> OrderLifecycle:
    return OrderLifecycle.from_settings(get_catalog())


def _error(message: str, status: int) -> JsonResponse:
    return JsonResponse({"error": message}, status=status)


def _json_body(request: HttpRequest) -> Dict[str, Any]:
    try:
        data = json.loads(request.body.decode("utf-8") or "{}")
    except (UnicodeDecodeError, ValueError) as e:
        raise InvalidRequest("Request body must be JSON.") from e
    if not isinstance(data, dict):
        raise InvalidRequest("Request body must be a JSON object.")
    return data


def _order_summary(o: Order) -> Dict[str, Any]:
    return {
        "vendorId": o.product_id,
        "email": o.buyer_email,
        "orderId": o.public_id,
        "amount": o.amount,
        "currency": o.currency,
        "paymentProvider": f"PayPal ({o.payment_source})" if o.payment_source else "PayPal",
        "payerName": o.payer_name,
        "verified": bool(o.verified),
        "downloadUrl": download_url(o),
    }


# -----------------------------
# Views
# -----------------------------

@csrf_exempt
@require_POST
def create_order(request: HttpRequest) -> JsonResponse:
    """
    POST /api/paypal/create-order {vendorId|productId, buyerEmail, testCharge}
    """
    try:
        body = _json_body(request)
        created = _lifecycle().create(
            product_id=str(body.get("vendorId") or body.get("productId") or ""),
            buyer_email=str(body.get("buyerEmail") or ""),
            test_charge=bool(body.get("testCharge")),
        )
    except LifecycleError as e:
        return _error(str(e), e.status_code)
    except PayPalError as e:
        log.warning("create-order failed: %s", e)
        return _error(str(e), 500)

    return JsonResponse({"id": created.id, "amount": created.amount, "currency": created.currency})


@csrf_exempt
@require_POST
def capture_order(request: HttpRequest) -> JsonResponse:
    """
    POST /api/paypal/capture-order {orderID}
    """
    try:
        body = _json_body(request)
        order = _lifecycle().capture(str(body.get("orderID") or ""))
    except LifecycleError as e:
        return _error(str(e), e.status_code)
    except PayPalError as e:
        log.warning("capture-order failed: %s", e)
        return _error(str(e), 500)

    return JsonResponse({"ok": True, "order": _order_summary(order)})


@csrf_exempt
@require_POST
def paypal_webhook(request: HttpRequest) -> JsonResponse:
    """
    POST /api/paypal/webhook
    Any verified event is acknowledged, even when it changes nothing.
    """
    try:
        _lifecycle().handle_webhook(request.headers, request.body)
    except LifecycleError as e:
        return _error(str(e), e.status_code)
    except PayPalError as e:
        log.warning("webhook verification call failed: %s", e)
        return _error(str(e), 500)

    return JsonResponse({"received": True})
