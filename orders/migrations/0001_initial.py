from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Order",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("paypal_order_id", models.CharField(max_length=64, unique=True)),
                ("capture_id", models.CharField(blank=True, db_index=True, max_length=64, null=True)),
                ("product_id", models.CharField(max_length=64)),
                ("product_name", models.CharField(max_length=200)),
                ("product_category", models.CharField(max_length=100)),
                ("buyer_email", models.EmailField(max_length=254)),
                ("amount", models.CharField(max_length=16)),
                ("currency", models.CharField(max_length=3)),
                (
                    "status",
                    models.CharField(
                        choices=[("CREATED", "Created"), ("CAPTURED", "Captured"), ("COMPLETED", "Completed")],
                        default="CREATED",
                        max_length=16,
                    ),
                ),
                ("verified", models.BooleanField(default=False)),
                ("email_sent", models.BooleanField(default=False)),
                ("delivery_claimed_at", models.DateTimeField(blank=True, null=True)),
                ("download_token", models.CharField(blank=True, max_length=64, null=True, unique=True)),
                ("payer_name", models.CharField(blank=True, max_length=255)),
                ("payment_source", models.CharField(blank=True, max_length=64)),
                ("raw_capture", models.JSONField(blank=True, default=dict)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ("-id",),
            },
        ),
    ]
