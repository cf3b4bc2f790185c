import json
from unittest import mock

from django.test import Client, TestCase, override_settings

from orders.models import Order

from .fakes import FakePayPal, capture_completed_event


@override_settings(PAYPAL_WEBHOOK_ID="WH-ID", SITE_URL="https://shop.example", DELIVERY_EMAIL_ENABLED=False)
class PaymentViewTests(TestCase):
    def setUp(self):
        self.gateway = FakePayPal()
        patcher = mock.patch("payments.lifecycle.PayPalClient.from_settings", return_value=self.gateway)
        patcher.start()
        self.addCleanup(patcher.stop)
        self.client = Client()

    def post(self, url, payload, **extra):
        return self.client.post(url, data=json.dumps(payload), content_type="application/json", **extra)

    def create(self, **payload):
        body = {"vendorId": "lux-clothing", "buyerEmail": "a@b.com"}
        body.update(payload)
        return self.post("/api/paypal/create-order", body)

    def test_create_order(self):
        r = self.create(currency="CAD")
        self.assertEqual(r.status_code, 200, r.content)
        self.assertEqual(r.json(), {"id": "PAYPAL-0001", "amount": "9.99", "currency": "USD"})
        self.assertTrue(Order.objects.filter(paypal_order_id="PAYPAL-0001").exists())

    def test_create_order_validation(self):
        self.assertEqual(self.post("/api/paypal/create-order", {"vendorId": "lux-clothing"}).status_code, 400)
        self.assertEqual(self.create(vendorId="missing").status_code, 404)
        r = self.client.post("/api/paypal/create-order", data="nope", content_type="application/json")
        self.assertEqual(r.status_code, 400)

    def test_create_order_gateway_error(self):
        self.gateway.fail_create = True
        r = self.create()
        self.assertEqual(r.status_code, 500)
        self.assertIn("error", r.json())

    def test_get_not_allowed(self):
        self.assertEqual(self.client.get("/api/paypal/create-order").status_code, 405)

    def test_capture_order(self):
        order_id = self.create().json()["id"]

        r = self.post("/api/paypal/capture-order", {"orderID": order_id})

        self.assertEqual(r.status_code, 200, r.content)
        data = r.json()
        self.assertTrue(data["ok"])
        o = Order.objects.get(paypal_order_id=order_id)
        self.assertEqual(data["order"]["orderId"], o.capture_id)
        self.assertEqual(data["order"]["paymentProvider"], "PayPal (paypal)")
        self.assertEqual(data["order"]["downloadUrl"], f"https://shop.example/download/{o.download_token}")
        self.assertFalse(data["order"]["verified"])

    def test_capture_errors(self):
        self.assertEqual(self.post("/api/paypal/capture-order", {}).status_code, 400)

        r = self.post("/api/paypal/capture-order", {"orderID": "PAYPAL-NOPE"})
        self.assertEqual(r.status_code, 404)
        self.assertEqual(Order.objects.count(), 0)

        order_id = self.create().json()["id"]
        self.gateway.fail_capture = True
        self.assertEqual(self.post("/api/paypal/capture-order", {"orderID": order_id}).status_code, 500)

    def test_webhook_completes_order(self):
        order_id = self.create().json()["id"]
        self.post("/api/paypal/capture-order", {"orderID": order_id})
        o = Order.objects.get(paypal_order_id=order_id)

        r = self.post(
            "/api/paypal/webhook",
            capture_completed_event(o.capture_id),
            HTTP_PAYPAL_TRANSMISSION_SIG="sig",
        )

        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json(), {"received": True})
        o.refresh_from_db()
        self.assertEqual(o.status, Order.Status.COMPLETED)
        self.assertTrue(o.verified)
        self.assertEqual(self.gateway.verifications[0]["headers"].get("Paypal-Transmission-Sig"), "sig")

    def test_webhook_ignorable_event_is_acknowledged(self):
        r = self.post("/api/paypal/webhook", {"event_type": "CHECKOUT.ORDER.APPROVED"})
        self.assertEqual(r.json(), {"received": True})

    def test_webhook_bad_signature(self):
        self.gateway.verify = False
        r = self.post("/api/paypal/webhook", capture_completed_event("CAP-1"))
        self.assertEqual(r.status_code, 400)

    @override_settings(PAYPAL_WEBHOOK_ID="")
    def test_webhook_not_configured(self):
        r = self.post("/api/paypal/webhook", capture_completed_event("CAP-1"))
        self.assertEqual(r.status_code, 500)
