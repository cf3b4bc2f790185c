from django.contrib import admin
from django.urls import path, include

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/", include("catalog.urls")),
    path("api/paypal/", include("payments.urls")),
    path("", include("orders.urls")),
]
