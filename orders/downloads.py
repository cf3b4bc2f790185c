from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from django.conf import settings

from catalog.products import Catalog, Product
from . import store
from .delivery import delivery_file_path
from .models import Order


@dataclass(frozen=True)
class DownloadGrant:
    order: Order
    product: Product
    file_path: Optional[Path]
    filename: str
    manifest: str = ""


@dataclass(frozen=True)
class Denied:
    status: int
    reason: str


def build_manifest(order: Order, product: Product) -> str:
    brand = getattr(settings, "BRAND_NAME", "TheResellPlug")
    lines = [
        f"{brand} - {product.name}",
        f"Category: {product.category}",
        f"Order ID: {order.public_id}",
        f"Purchased: {order.created_at.isoformat()}",
        "",
        "What you get:",
        *[f"- {item}" for item in product.what_you_get],
        "",
        "Vendor links:",
        *[f"- {link}" for link in product.delivery_links],
        "",
        "Digital product disclaimer: informational supplier file, non-refundable after delivery.",
    ]
    return "\n".join(lines)


def resolve(token: str, catalog: Catalog) -> Union[DownloadGrant, Denied]:
    """Read-only: decide what, if anything, a download token unlocks."""
    order = store.get_by_download_token(token)
    if order is None:
        return Denied(404, "Invalid download token.")

    if not order.is_downloadable:
        return Denied(403, "Order is not eligible for download.")

    product = catalog.get(order.product_id)
    if product is None:
        return Denied(404, "Vendor data not found.")

    path = delivery_file_path(product)
    if path:
        return DownloadGrant(order=order, product=product, file_path=path, filename=path.name)

    return DownloadGrant(
        order=order,
        product=product,
        file_path=None,
        filename=f"{product.id}-vendor-list.txt",
        manifest=build_manifest(order, product),
    )
