from django.urls import path
from . import views

app_name = "catalog"

urlpatterns = [
    path("config", views.client_config, name="config"),
    path("products/", views.product_list, name="product_list"),
    path("products/<slug:product_id>/", views.product_detail, name="product_detail"),
]
