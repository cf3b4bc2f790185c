from datetime import timedelta

from django.test import TestCase, override_settings
from django.utils import timezone

from catalog.products import load_catalog
from orders import store
from orders.models import Order


class StoreTestBase(TestCase):
    def setUp(self):
        self.product = load_catalog().get("lux-clothing")

    def created(self, paypal_order_id="ORDER-1", email="a@b.com") -> Order:
        return store.upsert_created(
            paypal_order_id=paypal_order_id,
            product=self.product,
            buyer_email=email,
            amount="9.99",
            currency="USD",
        )

    def captured(self, paypal_order_id="ORDER-1", capture_id="CAP-1") -> Order:
        self.created(paypal_order_id)
        return store.record_capture(
            paypal_order_id=paypal_order_id,
            capture_id=capture_id,
            payment_source="paypal",
            payer_name="Ada",
            raw={"id": paypal_order_id},
        )


class UpsertCreatedTests(StoreTestBase):
    def test_insert(self):
        o = self.created()
        self.assertEqual(o.status, Order.Status.CREATED)
        self.assertIsNone(o.download_token)
        self.assertIsNone(o.capture_id)
        self.assertFalse(o.verified)
        self.assertFalse(o.email_sent)
        self.assertEqual((o.product_id, o.product_name, o.product_category), ("lux-clothing", "Clothing Vendor", "Clothing"))

    def test_same_gateway_id_updates_in_place(self):
        first = self.created(email="a@b.com")
        second = self.created(email="c@d.com")

        self.assertEqual(first.pk, second.pk)
        self.assertEqual(Order.objects.count(), 1)
        o = Order.objects.get()
        self.assertEqual(o.buyer_email, "c@d.com")
        self.assertEqual(o.created_at, first.created_at)
        self.assertGreaterEqual(o.updated_at, first.updated_at)

    def test_captured_order_is_left_alone(self):
        captured = self.captured()
        again = self.created(email="other@example.com")

        self.assertEqual(again.status, Order.Status.CAPTURED)
        o = Order.objects.get()
        self.assertEqual(o.buyer_email, "a@b.com")
        self.assertEqual(o.download_token, captured.download_token)


class RecordCaptureTests(StoreTestBase):
    def test_unknown_order_is_noop(self):
        result = store.record_capture(
            paypal_order_id="ORDER-X", capture_id="CAP-X", payment_source="paypal", payer_name="x", raw={}
        )
        self.assertIsNone(result)
        self.assertEqual(Order.objects.count(), 0)

    def test_capture_assigns_token(self):
        o = self.captured()
        self.assertEqual(o.status, Order.Status.CAPTURED)
        self.assertEqual(o.capture_id, "CAP-1")
        self.assertEqual(len(o.download_token), 48)
        self.assertEqual(o.raw_capture, {"id": "ORDER-1"})

    def test_token_is_stable(self):
        o = self.captured()
        again = store.record_capture(
            paypal_order_id="ORDER-1", capture_id="CAP-1", payment_source="card", payer_name="Ada", raw={}
        )
        self.assertEqual(again.download_token, o.download_token)
        self.assertEqual(again.payment_source, "card")

    def test_completed_stays_completed(self):
        self.captured()
        store.mark_verified("CAP-1")
        again = store.record_capture(
            paypal_order_id="ORDER-1", capture_id="CAP-1", payment_source="paypal", payer_name="Ada", raw={}
        )
        self.assertEqual(again.status, Order.Status.COMPLETED)


class VerifyAndLookupTests(StoreTestBase):
    def test_mark_verified(self):
        self.captured()
        o = store.mark_verified("CAP-1")
        self.assertEqual(o.status, Order.Status.COMPLETED)
        self.assertTrue(o.verified)

    def test_mark_verified_unknown(self):
        self.assertIsNone(store.mark_verified("CAP-NOPE"))

    def test_lookups(self):
        o = self.captured()
        self.assertEqual(store.get_by_paypal_order_id("ORDER-1").pk, o.pk)
        self.assertEqual(store.get_by_capture_id("CAP-1").pk, o.pk)
        self.assertEqual(store.get_by_download_token(o.download_token).pk, o.pk)
        self.assertIsNone(store.get_by_download_token(""))
        self.assertIsNone(store.get_by_capture_id("CAP-2"))

    def test_recent_orders_newest_first(self):
        for i in range(5):
            self.created(paypal_order_id=f"ORDER-{i}")
        rows = store.recent_orders(3)
        self.assertEqual([o.paypal_order_id for o in rows], ["ORDER-4", "ORDER-3", "ORDER-2"])


class DeliveryLatchTests(StoreTestBase):
    def test_claim_is_exclusive(self):
        o = self.captured()
        self.assertTrue(store.claim_delivery(o.pk))
        self.assertFalse(store.claim_delivery(o.pk))

    def test_release_allows_new_claim(self):
        o = self.captured()
        store.claim_delivery(o.pk)
        store.release_delivery(o.pk)
        self.assertTrue(store.claim_delivery(o.pk))

    @override_settings(DELIVERY_CLAIM_TTL=60, EMAIL_TIMEOUT=30)
    def test_stale_claim_can_be_taken_over(self):
        o = self.captured()
        Order.objects.filter(pk=o.pk).update(delivery_claimed_at=timezone.now() - timedelta(minutes=5))
        self.assertTrue(store.claim_delivery(o.pk))

    @override_settings(DELIVERY_CLAIM_TTL=0, EMAIL_TIMEOUT=30)
    def test_claim_ttl_never_shorter_than_smtp_timeout(self):
        self.assertEqual(store.claim_ttl(), 60)

        o = self.captured()
        Order.objects.filter(pk=o.pk).update(delivery_claimed_at=timezone.now() - timedelta(seconds=45))
        self.assertFalse(store.claim_delivery(o.pk))

    @override_settings(DELIVERY_CLAIM_TTL=300, EMAIL_TIMEOUT=None)
    def test_claim_ttl_without_smtp_timeout(self):
        self.assertEqual(store.claim_ttl(), 300)

    def test_email_sent_latches_once(self):
        o = self.captured()
        self.assertFalse(store.mark_email_sent(o.pk))
        self.assertTrue(store.mark_email_sent(o.pk))
        self.assertFalse(store.claim_delivery(o.pk))

        store.release_delivery(o.pk)
        o.refresh_from_db()
        self.assertTrue(o.email_sent)
