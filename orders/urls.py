from django.urls import path
from . import views

app_name = "orders"

urlpatterns = [
    path("download/<str:token>", views.download, name="download"),
    path("api/admin/orders", views.admin_orders, name="admin_orders"),
]
