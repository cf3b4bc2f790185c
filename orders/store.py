"""
Persistence operations for Order rows.

Every write goes through a single UPDATE/INSERT or a short
select_for_update() transaction, and stamps updated_at explicitly because
QuerySet.update() bypasses auto_now.
"""
from __future__ import annotations

import logging
import secrets
from datetime import timedelta
from typing import Any, Dict, List, Optional

from django.conf import settings
from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from catalog.products import Product
from .models import Order

log = logging.getLogger(__name__)


def generate_download_token() -> str:
    return secrets.token_hex(24)


# -----------------------------
# Lookups (newest match wins)
# -----------------------------
def get_by_paypal_order_id(paypal_order_id: str) -> Optional[Order]:
    if not paypal_order_id:
        return None
    return Order.objects.filter(paypal_order_id=paypal_order_id).order_by("-id").first()


def get_by_capture_id(capture_id: str) -> Optional[Order]:
    if not capture_id:
        return None
    return Order.objects.filter(capture_id=capture_id).order_by("-id").first()


def get_by_download_token(token: str) -> Optional[Order]:
    if not token:
        return None
    return Order.objects.filter(download_token=token).order_by("-id").first()


def recent_orders(limit: int) -> List[Order]:
    return list(Order.objects.order_by("-id")[: max(int(limit), 0)])


# -----------------------------
# Mutations
# -----------------------------
def upsert_created(
    *,
    paypal_order_id: str,
    product: Product,
    buyer_email: str,
    amount: str,
    currency: str,
) -> Order:
    """
    Insert a CREATED order, or refresh buyer email/amount/currency on an
    existing one with the same gateway id.

    A record that already moved past CREATED is returned untouched: status
    never goes backwards and its download token stays valid.
    """
    with transaction.atomic():
        existing = Order.objects.select_for_update().filter(paypal_order_id=paypal_order_id).first()

        if existing is None:
            return Order.objects.create(
                paypal_order_id=paypal_order_id,
                product_id=product.id,
                product_name=product.name,
                product_category=product.category,
                buyer_email=buyer_email,
                amount=str(amount),
                currency=currency,
                status=Order.Status.CREATED,
            )

        if existing.status != Order.Status.CREATED:
            log.warning(
                "upsert_created ignored for %s: order already %s", paypal_order_id, existing.status
            )
            return existing

        existing.buyer_email = buyer_email
        existing.amount = str(amount)
        existing.currency = currency
        existing.status = Order.Status.CREATED
        existing.save(update_fields=["buyer_email", "amount", "currency", "status", "updated_at"])
        return existing


def record_capture(
    *,
    paypal_order_id: str,
    capture_id: str,
    payment_source: str,
    payer_name: str,
    raw: Optional[Dict[str, Any]] = None,
) -> Optional[Order]:
    """
    Store capture details and move the order to CAPTURED.
    Returns None (and writes nothing) when the gateway id is unknown.
    The download token is generated on the first capture only.
    """
    with transaction.atomic():
        o = Order.objects.select_for_update().filter(paypal_order_id=paypal_order_id).first()
        if o is None:
            return None

        o.capture_id = capture_id
        o.payment_source = payment_source or ""
        o.payer_name = payer_name or ""
        o.raw_capture = raw or {}
        if not o.download_token:
            o.download_token = generate_download_token()
        if o.status == Order.Status.CREATED:
            o.status = Order.Status.CAPTURED

        o.save(
            update_fields=[
                "capture_id",
                "payment_source",
                "payer_name",
                "raw_capture",
                "download_token",
                "status",
                "updated_at",
            ]
        )
        return o


def mark_verified(capture_id: str) -> Optional[Order]:
    """
    Flag the order holding `capture_id` as webhook-verified and COMPLETED.
    Returns the refreshed order, or None when no order has that capture id.
    """
    o = get_by_capture_id(capture_id)
    if o is None:
        return None

    Order.objects.filter(pk=o.pk).update(
        verified=True,
        status=Order.Status.COMPLETED,
        updated_at=timezone.now(),
    )
    o.refresh_from_db()
    return o


def claim_ttl() -> int:
    """
    Seconds before a delivery claim counts as abandoned. Never shorter than
    twice EMAIL_TIMEOUT, so a claim cannot lapse while its SMTP send can
    still be in flight.
    """
    ttl = int(getattr(settings, "DELIVERY_CLAIM_TTL", 300))
    email_timeout = getattr(settings, "EMAIL_TIMEOUT", None)
    if email_timeout:
        ttl = max(ttl, 2 * int(email_timeout))
    return ttl


def claim_delivery(order_id: int) -> bool:
    """
    Atomically reserve the right to send the delivery email.

    True only for the single caller whose UPDATE matched: email not yet sent
    and no live claim. A claim older than claim_ttl() seconds counts as
    abandoned.
    """
    now = timezone.now()
    ttl = claim_ttl()
    stale_before = now - timedelta(seconds=ttl)

    updated = (
        Order.objects.filter(pk=order_id, email_sent=False)
        .filter(Q(delivery_claimed_at__isnull=True) | Q(delivery_claimed_at__lt=stale_before))
        .update(delivery_claimed_at=now, updated_at=now)
    )
    return updated == 1


def release_delivery(order_id: int) -> None:
    Order.objects.filter(pk=order_id, email_sent=False).update(
        delivery_claimed_at=None,
        updated_at=timezone.now(),
    )


def mark_email_sent(order_id: int) -> bool:
    """
    Latch email_sent. Returns True if it was already set (nothing written).
    """
    updated = Order.objects.filter(pk=order_id, email_sent=False).update(
        email_sent=True,
        updated_at=timezone.now(),
    )
    return updated == 0
