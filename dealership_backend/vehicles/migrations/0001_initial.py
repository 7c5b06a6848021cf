# Generated for the initial dealership schema

import uuid

import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("organizations", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Vehicle",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("model_name", models.CharField(db_index=True, max_length=255)),
                ("version", models.CharField(blank=True, max_length=255)),
                ("price", models.PositiveBigIntegerField()),
                ("wholesale_price", models.PositiveBigIntegerField(blank=True, null=True)),
                ("specs", models.JSONField(blank=True, default=dict)),
                ("description", models.TextField(blank=True)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "manufacturer",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="vehicles",
                        to="organizations.manufacturer",
                    ),
                ),
            ],
            options={
                "ordering": ["model_name", "version"],
                "indexes": [
                    models.Index(fields=["manufacturer", "model_name"], name="idx_vehicle_manufacturer_model"),
                ],
            },
        ),
        migrations.CreateModel(
            name="StockEntry",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("color", models.CharField(max_length=64)),
                (
                    "owner_type",
                    models.CharField(
                        choices=[("manufacturer", "Manufacturer"), ("dealer", "Dealer")],
                        max_length=16,
                    ),
                ),
                ("owner_id", models.UUIDField()),
                ("total_quantity", models.PositiveIntegerField(default=0)),
                ("total_sold", models.PositiveIntegerField(default=0)),
                ("reserved_quantity", models.PositiveIntegerField(default=0)),
                ("version", models.PositiveIntegerField(default=0)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "vehicle",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="stock_entries",
                        to="vehicles.vehicle",
                    ),
                ),
            ],
            options={
                "ordering": ["vehicle", "color"],
                "indexes": [
                    models.Index(fields=["owner_type", "owner_id"], name="idx_stock_owner"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("vehicle", "color", "owner_type", "owner_id"),
                        name="uniq_stock_entry_vehicle_color_owner",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("total_sold__lte", models.F("total_quantity"))),
                        name="chk_stock_sold_lte_total",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(
                            ("reserved_quantity__lte", models.F("total_quantity") - models.F("total_sold"))
                        ),
                        name="chk_stock_reserved_lte_remaining",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="StockMovement",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "movement_type",
                    models.CharField(choices=[("IN", "Stock In"), ("OUT", "Stock Out")], max_length=3),
                ),
                (
                    "reason",
                    models.CharField(
                        choices=[
                            ("RECEIPT", "Stock Receipt"),
                            ("SALE", "Sale"),
                            ("SALE_REVERSAL", "Sale Reversal"),
                            ("ADJUSTMENT", "Manual Adjustment"),
                        ],
                        max_length=20,
                    ),
                ),
                ("quantity", models.PositiveIntegerField()),
                ("reference_type", models.CharField(blank=True, default="", max_length=32)),
                ("reference_id", models.UUIDField(blank=True, null=True)),
                ("notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "entry",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="movements",
                        to="vehicles.stockentry",
                    ),
                ),
                (
                    "performed_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="stock_movements",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["created_at"],
                "indexes": [
                    models.Index(fields=["created_at"], name="idx_movement_created"),
                    models.Index(fields=["reason"], name="idx_movement_reason"),
                    models.Index(fields=["entry", "created_at"], name="idx_movement_entry_created"),
                    models.Index(fields=["reference_type", "reference_id"], name="idx_movement_reference"),
                ],
            },
        ),
        migrations.CreateModel(
            name="StockReservation",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("reference_type", models.CharField(max_length=32)),
                ("reference_id", models.UUIDField()),
                ("quantity", models.PositiveIntegerField()),
                (
                    "status",
                    models.CharField(
                        choices=[("active", "Active"), ("consumed", "Consumed"), ("released", "Released")],
                        default="active",
                        max_length=16,
                    ),
                ),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("closed_at", models.DateTimeField(blank=True, null=True)),
                (
                    "entry",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="reservations",
                        to="vehicles.stockentry",
                    ),
                ),
            ],
            options={
                "ordering": ["created_at"],
                "indexes": [
                    models.Index(
                        fields=["reference_type", "reference_id", "status"],
                        name="idx_reservation_reference",
                    ),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("quantity__gte", 1)),
                        name="chk_reservation_quantity_positive",
                    ),
                ],
            },
        ),
    ]
