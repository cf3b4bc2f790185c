from django.conf import settings
from django.http import FileResponse, HttpResponse, JsonResponse
from django.utils.crypto import constant_time_compare
from django.views.decorators.http import require_GET

from catalog.apps import get_catalog
from . import store
from .downloads import Denied, resolve
from .models import Order


@require_GET
def download(request, token: str):
    result = resolve(token, get_catalog())
    if isinstance(result, Denied):
        return HttpResponse(result.reason, status=result.status, content_type="text/plain; charset=utf-8")

    if result.file_path is not None:
        return FileResponse(result.file_path.open("rb"), as_attachment=True, filename=result.filename)

    resp = HttpResponse(result.manifest, content_type="text/plain; charset=utf-8")
    resp["Content-Disposition"] = f'attachment; filename="{result.filename}"'
    return resp


def _admin_row(o: Order) -> dict:
    return {
        "id": o.id,
        "paypal_order_id": o.paypal_order_id,
        "capture_id": o.capture_id,
        "vendor_id": o.product_id,
        "vendor_name": o.product_name,
        "vendor_category": o.product_category,
        "buyer_email": o.buyer_email,
        "amount": o.amount,
        "currency": o.currency,
        "status": o.status,
        "verified": o.verified,
        "email_sent": o.email_sent,
        "payment_source": o.payment_source,
        "payer_name": o.payer_name,
        "created_at": o.created_at.isoformat(),
        "updated_at": o.updated_at.isoformat(),
    }


@require_GET
def admin_orders(request):
    expected = str(getattr(settings, "ADMIN_DASH_TOKEN", "") or "")
    if not expected:
        return JsonResponse({"error": "ADMIN_DASH_TOKEN is not configured."}, status=500)

    given = request.headers.get("X-Admin-Token") or request.GET.get("token") or ""
    if not constant_time_compare(given, expected):
        return JsonResponse({"error": "Unauthorized."}, status=401)

    limit = getattr(settings, "ADMIN_ORDERS_LIMIT", 300)
    return JsonResponse({"orders": [_admin_row(o) for o in store.recent_orders(limit)]})
