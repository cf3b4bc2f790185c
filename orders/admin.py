from django.contrib import admin
from django.utils.html import format_html

from .delivery import format_money
from .models import Order

_BADGES = {
    Order.Status.CREATED: ("#fff4e5", "#b06000", "Awaiting payment"),
    Order.Status.CAPTURED: ("#e8f0fe", "#1a73e8", "Captured"),
    Order.Status.COMPLETED: ("#e6f4ea", "#137333", "Completed"),
}


def _short(s: str, n: int = 10) -> str:
    s = str(s or "")
    return s if len(s) <= n else (s[:n] + "…")


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_per_page = 50
    save_on_top = True
    date_hierarchy = "created_at"
    ordering = ("-id",)

    list_display = (
        "id",
        "paypal_short",
        "status_badge",
        "product_name",
        "buyer_email",
        "amount_display",
        "verified",
        "email_sent",
        "created_at",
    )
    list_filter = ("status", "verified", "email_sent", "created_at")
    search_fields = ("paypal_order_id", "capture_id", "buyer_email", "product_id")

    # Every field is owned by the checkout flow; the buyer email is what
    # delivery and the download link were issued against.
    readonly_fields = (
        "paypal_order_id",
        "buyer_email",
        "capture_id",
        "product_id",
        "product_name",
        "product_category",
        "amount",
        "currency",
        "status",
        "verified",
        "email_sent",
        "delivery_claimed_at",
        "download_token",
        "payer_name",
        "payment_source",
        "raw_capture",
        "created_at",
        "updated_at",
    )

    fieldsets = (
        ("Status", {"fields": ("status", "verified", "email_sent", "delivery_claimed_at")}),
        ("Product", {"fields": ("product_id", "product_name", "product_category")}),
        ("Amount", {"fields": ("amount", "currency")}),
        ("Buyer", {"fields": ("buyer_email", "payer_name")}),
        ("Payment", {"fields": ("paypal_order_id", "capture_id", "payment_source", "download_token")}),
        ("Metadata", {"fields": ("created_at", "updated_at", "raw_capture"), "classes": ("collapse",)}),
    )

    def has_add_permission(self, request):
        return False

    @admin.display(description="PayPal order", ordering="paypal_order_id")
    def paypal_short(self, obj: Order) -> str:
        return _short(obj.paypal_order_id, 12)

    @admin.display(description="Status", ordering="status")
    def status_badge(self, obj: Order) -> str:
        bg, fg, label = _BADGES.get(obj.status, ("#eee", "#333", obj.status))
        return format_html(
            '<span style="padding:2px 8px;border-radius:10px;background:{};color:{};">{}</span>', bg, fg, label
        )

    @admin.display(description="Amount", ordering="amount")
    def amount_display(self, obj: Order) -> str:
        return format_money(obj.amount, obj.currency)
