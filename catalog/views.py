from django.conf import settings
from django.http import Http404, JsonResponse
from django.views.decorators.http import require_GET

from .apps import get_catalog


@require_GET
def client_config(request):
    return JsonResponse(
        {
            "paypalClientId": getattr(settings, "PAYPAL_CLIENT_ID", ""),
            "defaultCurrency": getattr(settings, "DEFAULT_CURRENCY", "CAD"),
            "paypalEnv": getattr(settings, "PAYPAL_ENV", "live"),
            "siteUrl": getattr(settings, "SITE_URL", ""),
        }
    )


@require_GET
def product_list(request):
    products = [p.as_json() for p in get_catalog()]
    return JsonResponse({"products": products})


@require_GET
def product_detail(request, product_id: str):
    product = get_catalog().get(product_id)
    if product is None:
        raise Http404("Vendor not found.")
    return JsonResponse(product.as_json())
