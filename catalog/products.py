from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, Mapping, Optional, Tuple

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Product:
    id: str
    name: str
    category: str
    price: Decimal
    image: str = ""
    delivery_file: str = ""
    what_you_get: Tuple[str, ...] = field(default_factory=tuple)
    delivery_links: Tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "Product":
        """
        Accepts both snake_case and the camelCase keys used by the storefront
        bundle (deliveryFile, whatYouGet, deliveryLinks).
        """
        product_id = str(raw.get("id") or "").strip()
        if not product_id:
            raise ValueError("catalog entry without id")

        return cls(
            id=product_id,
            name=str(raw.get("name") or product_id),
            category=str(raw.get("category") or ""),
            price=Decimal(str(raw.get("price", "0"))).quantize(Decimal("0.01")),
            image=str(raw.get("image") or ""),
            delivery_file=str(raw.get("delivery_file") or raw.get("deliveryFile") or ""),
            what_you_get=tuple(raw.get("what_you_get") or raw.get("whatYouGet") or ()),
            delivery_links=tuple(raw.get("delivery_links") or raw.get("deliveryLinks") or ()),
        )

    def as_json(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "price": str(self.price),
            "image": self.image,
            "whatYouGet": list(self.what_you_get),
            "deliveryLinks": list(self.delivery_links),
        }


class Catalog:
    """Read-only product lookup, built once at startup."""

    def __init__(self, products: Iterable[Product]):
        by_id: Dict[str, Product] = {}
        for p in products:
            if p.id in by_id:
                raise ValueError(f"duplicate product id in catalog: {p.id}")
            by_id[p.id] = p
        self._by_id = MappingProxyType(by_id)

    def get(self, product_id: Optional[str]) -> Optional[Product]:
        if not product_id:
            return None
        return self._by_id.get(product_id)

    def __contains__(self, product_id: object) -> bool:
        return product_id in self._by_id

    def __iter__(self) -> Iterator[Product]:
        return iter(self._by_id.values())

    def __len__(self) -> int:
        return len(self._by_id)


DEFAULT_PRODUCTS = (
    {
        "id": "starter-bundle",
        "name": "Elite Supplier Bundle",
        "category": "Bundle",
        "price": "37.99",
        "image": "/Elite%20Supplier%20Bundle%20Image.png",
        "deliveryFile": "Bundle Email.png",
        "whatYouGet": ["Clothing Vendor", "Cologne Vendor", "Electronic Vendor", "Receipt Vendor", "Watch Vendor"],
        "deliveryLinks": [
            "https://replace-with-your-clothing-vendor-link.com",
            "https://replace-with-your-cologne-vendor-link.com",
            "https://replace-with-your-electronic-vendor-link.com",
            "https://replace-with-your-receipt-vendor-link.com",
            "https://replace-with-your-watch-vendor-link.com",
        ],
    },
    {
        "id": "lux-clothing",
        "name": "Clothing Vendor",
        "category": "Clothing",
        "price": "9.99",
        "image": "/Clothing%20Vendor%20Image.png",
        "deliveryFile": "Clothing Email.png",
        "whatYouGet": ["1,000+ Different types of clothing, Jackets, and Jewellery"],
        "deliveryLinks": ["https://replace-with-your-clothing-vendor-link.com"],
    },
    {
        "id": "sneaker-source",
        "name": "Cologne Vendor",
        "category": "Cologne",
        "price": "9.99",
        "image": "/Cologne%20Vendor%20Image.png",
        "deliveryFile": "Colonge Email.png",
        "whatYouGet": ["Over 300+ Different Types of Cologne & Perfume"],
        "deliveryLinks": ["https://replace-with-your-cologne-vendor-link.com"],
    },
    {
        "id": "tech-electronics",
        "name": "Electronic Vendor",
        "category": "Electronics",
        "price": "9.99",
        "image": "/Electronic%20Vendor%20Image.png",
        "deliveryFile": "Electronic Email.png",
        "whatYouGet": ["Airpod (2,3,4)", "Airpod Maxes", "JBL Speaker", "Dyson", "Beats"],
        "deliveryLinks": ["https://replace-with-your-electronic-vendor-link.com"],
    },
    {
        "id": "beauty-glow",
        "name": "Receipt Vendor",
        "category": "Reciepts",
        "price": "9.99",
        "image": "/Receipt%20Vendor%20Image%20.png",
        "deliveryFile": "Reciept Email.png",
        "whatYouGet": ["100+ DIfferent Store Receipts"],
        "deliveryLinks": ["https://replace-with-your-receipt-vendor-link.com"],
    },
    {
        "id": "home-finds",
        "name": "Watch Vendor",
        "category": "Watches",
        "price": "9.99",
        "image": "/Watch%20Vendor%20Image.png",
        "deliveryFile": "Watch Email.png",
        "whatYouGet": ["100+ Luxury Brand Watchs"],
        "deliveryLinks": ["https://replace-with-your-watch-vendor-link.com"],
    },
)


def load_catalog(path: Optional[str] = None) -> Catalog:
    """
    Build the catalog from a JSON file (a list of product objects) when
    `path` is given, otherwise from DEFAULT_PRODUCTS.
    """
    if not path:
        return Catalog(Product.from_dict(p) for p in DEFAULT_PRODUCTS)

    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(raw, list):
        raise ValueError(f"catalog file {path} must contain a JSON list")

    catalog = Catalog(Product.from_dict(p) for p in raw)
    log.info("Loaded %d products from %s", len(catalog), path)
    return catalog
