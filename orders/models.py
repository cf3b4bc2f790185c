from django.db import models


class Order(models.Model):
    class Status(models.TextChoices):
        CREATED = "CREATED", "Created"
        CAPTURED = "CAPTURED", "Captured"
        COMPLETED = "COMPLETED", "Completed"

    paypal_order_id = models.CharField(max_length=64, unique=True)
    capture_id = models.CharField(max_length=64, null=True, blank=True, db_index=True)

    # snapshot of the catalog entry at purchase time
    product_id = models.CharField(max_length=64)
    product_name = models.CharField(max_length=200)
    product_category = models.CharField(max_length=100)

    buyer_email = models.EmailField()
    amount = models.CharField(max_length=16)  # decimal as text, e.g. "9.99"
    currency = models.CharField(max_length=3)

    status = models.CharField(max_length=16, choices=Status.choices, default=Status.CREATED)
    verified = models.BooleanField(default=False)
    email_sent = models.BooleanField(default=False)
    delivery_claimed_at = models.DateTimeField(null=True, blank=True)

    download_token = models.CharField(max_length=64, null=True, blank=True, unique=True)

    payer_name = models.CharField(max_length=255, blank=True)
    payment_source = models.CharField(max_length=64, blank=True)
    raw_capture = models.JSONField(default=dict, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("-id",)

    def __str__(self) -> str:
        return f"Order {self.paypal_order_id} ({self.status})"

    @property
    def public_id(self) -> str:
        """Identifier shown to the buyer: capture id once known."""
        return self.capture_id or self.paypal_order_id

    @property
    def is_downloadable(self) -> bool:
        return self.status in (self.Status.CAPTURED, self.Status.COMPLETED)
