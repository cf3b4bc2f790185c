from django.contrib import admin
from django.contrib.auth import get_user_model
from django.test import RequestFactory, TestCase
from django.urls import reverse

from catalog.products import load_catalog
from orders import store
from orders.admin import OrderAdmin
from orders.models import Order


class OrderAdminTests(TestCase):
    def setUp(self):
        store.upsert_created(
            paypal_order_id="ORDER-1",
            product=load_catalog().get("lux-clothing"),
            buyer_email="a@b.com",
            amount="9.99",
            currency="USD",
        )
        self.order = store.record_capture(
            paypal_order_id="ORDER-1", capture_id="CAP-1", payment_source="paypal", payer_name="Ada", raw={}
        )
        self.user = get_user_model().objects.create_superuser("admin", "admin@example.com", "pw")

    def test_every_field_is_read_only(self):
        model_admin = OrderAdmin(Order, admin.site)
        request = RequestFactory().get("/")
        request.user = self.user

        readonly = set(model_admin.get_readonly_fields(request, self.order))
        self.assertIn("buyer_email", readonly)
        for _, opts in model_admin.get_fieldsets(request, self.order):
            for field in opts["fields"]:
                self.assertIn(field, readonly)
        self.assertEqual(list(model_admin.get_form(request, self.order).base_fields), [])

    def test_change_form_cannot_rewrite_buyer_email(self):
        self.client.force_login(self.user)
        url = reverse("admin:orders_order_change", args=[self.order.pk])

        resp = self.client.post(url, {"buyer_email": "attacker@example.com", "_save": "Save"})

        self.assertEqual(resp.status_code, 302)
        self.order.refresh_from_db()
        self.assertEqual(self.order.buyer_email, "a@b.com")

    def test_add_is_disabled(self):
        self.client.force_login(self.user)
        resp = self.client.get(reverse("admin:orders_order_add"))
        self.assertEqual(resp.status_code, 403)
