"""
Order lifecycle: CREATED -> CAPTURED -> COMPLETED.

Two independent paths can confirm a payment and trigger delivery:
  - the buyer's synchronous capture call
  - PayPal's PAYMENT.CAPTURE.COMPLETED webhook (at-least-once, any order)
Both go through deliver_once(), which claims the order atomically before
sending, so the email goes out at most once per order.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Optional

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import validate_email

from catalog.products import Catalog
from orders import store
from orders.delivery import DeliveryNotifier
from orders.models import Order
from .gateway import PayPalClient, WebhookEvent

log = logging.getLogger(__name__)

CAPTURE_COMPLETED = "PAYMENT.CAPTURE.COMPLETED"


class LifecycleError(Exception):
    status_code = 500


class InvalidRequest(LifecycleError):
    status_code = 400


class ProductNotFound(LifecycleError):
    status_code = 404


class OrderNotFound(LifecycleError):
    status_code = 404


class SignatureRejected(LifecycleError):
    status_code = 400


class WebhookNotConfigured(LifecycleError):
    status_code = 500


@dataclass(frozen=True)
class CreatedOrder:
    id: str
    amount: str
    currency: str


def _money(value: Any) -> str:
    try:
        return str(Decimal(str(value)).quantize(Decimal("0.01")))
    except (InvalidOperation, ValueError) as e:
        raise InvalidRequest(f"Invalid amount: {value!r}") from e


class OrderLifecycle:
    def __init__(
        self,
        *,
        catalog: Catalog,
        gateway: PayPalClient,
        notifier: DeliveryNotifier,
        webhook_id: str = "",
        charge_currency: str = "USD",
        allow_test_charge: bool = False,
        test_charge_amount: str = "1.00",
    ):
        self.catalog = catalog
        self.gateway = gateway
        self.notifier = notifier
        self.webhook_id = (webhook_id or "").strip()
        self.charge_currency = charge_currency
        self.allow_test_charge = allow_test_charge
        self.test_charge_amount = _money(test_charge_amount)

    @classmethod
    def from_settings(cls, catalog: Catalog) -> "OrderLifecycle":
        return cls(
            catalog=catalog,
            gateway=PayPalClient.from_settings(),
            notifier=DeliveryNotifier(),
            webhook_id=getattr(settings, "PAYPAL_WEBHOOK_ID", ""),
            charge_currency=getattr(settings, "CHARGE_CURRENCY", "USD"),
            allow_test_charge=getattr(settings, "ALLOW_TEST_CHARGE", False),
            test_charge_amount=getattr(settings, "TEST_CHARGE_AMOUNT", "1.00"),
        )

    # -----------------------------
    # Create
    # -----------------------------
    def create(self, *, product_id: str, buyer_email: str, test_charge: bool = False) -> CreatedOrder:
        product_id = (product_id or "").strip()
        buyer_email = (buyer_email or "").strip()

        if not product_id or not buyer_email:
            raise InvalidRequest("vendorId and buyerEmail are required.")
        try:
            validate_email(buyer_email)
        except ValidationError as e:
            raise InvalidRequest("buyerEmail is not a valid email address.") from e

        product = self.catalog.get(product_id)
        if product is None:
            raise ProductNotFound("Vendor not found.")

        if test_charge and self.allow_test_charge:
            amount = self.test_charge_amount
        else:
            amount = _money(product.price)
        currency = self.charge_currency

        paypal_order_id = self.gateway.create_order(
            amount=amount,
            currency=currency,
            description=product.name,
            reference_id=product.id,
        )

        store.upsert_created(
            paypal_order_id=paypal_order_id,
            product=product,
            buyer_email=buyer_email,
            amount=amount,
            currency=currency,
        )
        log.info("Created order %s for %s (%s %s)", paypal_order_id, product.id, amount, currency)
        return CreatedOrder(id=paypal_order_id, amount=amount, currency=currency)

    # -----------------------------
    # Capture
    # -----------------------------
    def capture(self, paypal_order_id: str) -> Order:
        paypal_order_id = (paypal_order_id or "").strip()
        if not paypal_order_id:
            raise InvalidRequest("orderID is required.")

        if store.get_by_paypal_order_id(paypal_order_id) is None:
            raise OrderNotFound("Order not found in database.")

        result = self.gateway.capture_order(paypal_order_id)

        order = store.record_capture(
            paypal_order_id=paypal_order_id,
            capture_id=result.capture_id,
            payment_source=result.payment_source,
            payer_name=result.payer_name,
            raw=result.raw,
        )
        if order is None:
            raise OrderNotFound("Order not found in database.")

        log.info("Captured order %s (capture %s)", paypal_order_id, result.capture_id)

        if not order.email_sent:
            self.deliver_once(order)
            order.refresh_from_db()
        return order

    # -----------------------------
    # Webhook
    # -----------------------------
    def handle_webhook(self, headers: Mapping[str, str], body: bytes) -> Optional[Order]:
        """
        Returns the order the event resolved to, or None when the event was
        ignorable (other event type, unknown capture/order).
        """
        if not self.webhook_id:
            raise WebhookNotConfigured("PAYPAL_WEBHOOK_ID is not configured.")

        try:
            payload = json.loads(body.decode("utf-8") or "{}")
        except (UnicodeDecodeError, ValueError) as e:
            raise InvalidRequest("Webhook body is not valid JSON.") from e
        if not isinstance(payload, dict):
            raise InvalidRequest("Webhook body must be a JSON object.")

        verified = self.gateway.verify_webhook_signature(
            headers=headers, event=payload, webhook_id=self.webhook_id
        )
        if not verified:
            log.warning("Rejected webhook with failed signature verification")
            raise SignatureRejected("Webhook signature verification failed.")

        event = WebhookEvent.from_body(payload)
        if event.event_type != CAPTURE_COMPLETED:
            log.debug("Ignoring webhook event %s", event.event_type or "<none>")
            return None

        order = self._verify_capture(event)
        if order is None:
            log.info(
                "Webhook %s matched no order (capture=%s, order=%s)",
                event.event_type,
                event.capture_id,
                event.order_id,
            )
            return None

        if not order.email_sent:
            self.deliver_once(order)
            order.refresh_from_db()
        return order

    def _verify_capture(self, event: WebhookEvent) -> Optional[Order]:
        order = store.mark_verified(event.capture_id) if event.capture_id else None
        if order is None and event.order_id:
            fallback = store.get_by_paypal_order_id(event.order_id)
            if fallback is not None and fallback.capture_id:
                order = store.mark_verified(fallback.capture_id)
        return order

    # -----------------------------
    # Delivery
    # -----------------------------
    def deliver_once(self, order: Order) -> bool:
        """
        Send the delivery email unless another path already did or is doing so.
        Never raises: a failed send is logged and the claim released.
        """
        product = self.catalog.get(order.product_id)
        if product is None:
            log.warning("No catalog product %s for order %s", order.product_id, order.paypal_order_id)
            return False

        if not store.claim_delivery(order.pk):
            log.info("Delivery for %s already sent or in progress, skipping", order.paypal_order_id)
            return False

        try:
            sent = self.notifier.deliver(order, product)
        except Exception:
            log.exception("Email delivery failed for %s", order.paypal_order_id)
            store.release_delivery(order.pk)
            return False

        if not sent:
            store.release_delivery(order.pk)
            return False

        store.mark_email_sent(order.pk)
        return True
