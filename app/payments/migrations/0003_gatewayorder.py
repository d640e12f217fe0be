"""
Keep every gateway order id issued for an escrow.

Backfills one row per existing escrow from its current order id.
"""

import django.db.models.deletion
from django.db import migrations, models


def backfill_orders(apps, schema_editor):
    Escrow = apps.get_model("payments", "Escrow")
    GatewayOrder = apps.get_model("payments", "GatewayOrder")

    GatewayOrder.objects.bulk_create(
        [
            GatewayOrder(escrow_id=escrow_id, order_id=order_id)
            for escrow_id, order_id in Escrow.objects.values_list("id", "gateway_order_id")
        ],
        ignore_conflicts=True,
    )


class Migration(migrations.Migration):
    dependencies = [
        ("payments", "0002_add_reconcile_escrows_schedule"),
    ]

    operations = [
        migrations.CreateModel(
            name="GatewayOrder",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "order_id",
                    models.CharField(
                        help_text="Order id registered with the payment gateway",
                        max_length=50,
                        unique=True,
                    ),
                ),
                (
                    "escrow",
                    models.ForeignKey(
                        help_text="Escrow the order was issued for",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="gateway_orders",
                        to="payments.escrow",
                    ),
                ),
            ],
            options={
                "verbose_name": "Gateway order",
                "verbose_name_plural": "Gateway orders",
                "ordering": ["-created_at"],
            },
        ),
        migrations.RunPython(backfill_orders, migrations.RunPython.noop),
    ]
