from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from email.mime.image import MIMEImage
from pathlib import Path
from typing import List, Optional

from django.conf import settings
from django.core.mail import EmailMultiAlternatives
from django.core.mail.message import SafeMIMEMultipart
from django.template.loader import render_to_string

from catalog.products import Product
from .models import Order

log = logging.getLogger(__name__)

LOGO_CID = "brand-logo"
LOGO_CANDIDATES = (
    "Logo Image.png",
    "TheResellPlug Logo.png",
    "theresellplug-logo.png",
    "brand-logo.png",
    "Logo.png",
    "logo.png",
)


def _files_dir() -> Path:
    return Path(getattr(settings, "DELIVERY_FILES_DIR", "delivery"))


def delivery_file_path(product: Optional[Product]) -> Optional[Path]:
    if product is None or not product.delivery_file:
        return None
    path = _files_dir() / product.delivery_file
    return path if path.is_file() else None


def brand_logo_path() -> Optional[Path]:
    for name in LOGO_CANDIDATES:
        path = _files_dir() / name
        if path.is_file():
            return path
    return None


def download_url(order: Order) -> str:
    return f"{getattr(settings, 'SITE_URL', '')}/download/{order.download_token}"


def format_money(amount: str, currency: str) -> str:
    try:
        value = Decimal(str(amount))
    except (InvalidOperation, ValueError):
        return f"{amount} {currency}"
    return f"${value:,.2f} {currency}"


class DeliveryEmail(EmailMultiAlternatives):
    """
    Text + HTML email whose inline images share a multipart/related part
    with the HTML only. File attachments stay in the outer multipart/mixed.
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.inline_images: List[MIMEImage] = []

    def attach_inline_image(self, path: Path, cid: str) -> None:
        image = MIMEImage(path.read_bytes(), _subtype=path.suffix.lstrip(".").lower() or "png")
        image.add_header("Content-ID", f"<{cid}>")
        image.add_header("Content-Disposition", "inline", filename=path.name)
        self.inline_images.append(image)

    def _create_alternatives(self, msg):
        msg = super()._create_alternatives(msg)
        if not self.inline_images:
            return msg
        related = SafeMIMEMultipart(_subtype="related", encoding=self.encoding or settings.DEFAULT_CHARSET)
        related.attach(msg)
        for image in self.inline_images:
            related.attach(image)
        return related


class DeliveryNotifier:
    """
    Sends the delivery email for a paid order. Does no deduplication of its
    own; callers gate it with the order's delivery claim.
    """

    def is_configured(self) -> bool:
        return bool(getattr(settings, "DELIVERY_EMAIL_ENABLED", False))

    def build_message(self, order: Order, product: Product) -> DeliveryEmail:
        logo = brand_logo_path()
        context = {
            "brand": getattr(settings, "BRAND_NAME", "TheResellPlug"),
            "order": order,
            "product": product,
            "amount": format_money(order.amount, order.currency),
            "links": list(product.delivery_links),
            "download_url": download_url(order),
            "logo_cid": LOGO_CID if logo else "",
        }

        msg = DeliveryEmail(
            subject=f"Your download: {product.name}",
            body=render_to_string("orders/email/delivery.txt", context),
            from_email=getattr(settings, "DEFAULT_FROM_EMAIL", None),
            to=[order.buyer_email],
        )
        msg.attach_alternative(render_to_string("orders/email/delivery.html", context), "text/html")

        attachment = delivery_file_path(product)
        if attachment:
            msg.attach_file(str(attachment))

        if logo:
            msg.attach_inline_image(logo, LOGO_CID)

        return msg

    def deliver(self, order: Order, product: Product) -> bool:
        """
        Returns False when no transport is configured; raises on send failure.
        """
        if not self.is_configured():
            log.info("Delivery email skipped for %s: SMTP is not configured", order.paypal_order_id)
            return False

        self.build_message(order, product).send(fail_silently=False)
        log.info("Delivery email sent for %s to %s", order.paypal_order_id, order.buyer_email)
        return True
