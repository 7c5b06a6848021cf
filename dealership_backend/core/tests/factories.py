# core/tests/factories.py

"""
Shared test data builders (plain ORM, no factory library).
"""

from __future__ import annotations

import itertools

from django.contrib.auth import get_user_model

from organizations.models import Dealership, Manufacturer
from orders.models import Customer
from vehicles.models import StockEntry, Vehicle
from vehicles.services import stock_ledger

User = get_user_model()

_seq = itertools.count(1)


def make_manufacturer(name: str = "VinFast") -> Manufacturer:
    return Manufacturer.objects.create(name=name, code=f"MFR-{next(_seq)}")


def make_dealership(name: str = "Dealer Hanoi") -> Dealership:
    return Dealership.objects.create(name=name, code=f"DLR-{next(_seq)}")


def make_user(role: str, *, dealership=None, manufacturer=None, email: str | None = None):
    return User.objects.create_user(
        email=email or f"{role}-{next(_seq)}@example.com",
        password="pass",
        role=role,
        dealership=dealership,
        manufacturer=manufacturer,
    )


def make_admin():
    return User.objects.create_superuser(email=f"admin-{next(_seq)}@example.com", password="pass")


def make_vehicle(manufacturer, *, model_name: str = "VF 8", price: int = 1_000_000_000, wholesale_price=None) -> Vehicle:
    return Vehicle.objects.create(
        manufacturer=manufacturer,
        model_name=model_name,
        version="Plus",
        price=price,
        wholesale_price=wholesale_price,
    )


def make_customer(dealership, *, full_name: str = "Nguyen Van A") -> Customer:
    return Customer.objects.create(dealership=dealership, full_name=full_name, phone="0900000000")


def stock_manufacturer(vehicle, color: str, quantity: int) -> StockEntry:
    return stock_ledger.receive(
        vehicle=vehicle,
        color=color,
        owner_type=StockEntry.OwnerType.MANUFACTURER,
        owner_id=vehicle.manufacturer_id,
        quantity=quantity,
    )


def stock_dealer(vehicle, color: str, quantity: int, *, dealership) -> StockEntry:
    return stock_ledger.receive(
        vehicle=vehicle,
        color=color,
        owner_type=StockEntry.OwnerType.DEALER,
        owner_id=dealership.id,
        quantity=quantity,
    )


class WorkflowWorld:
    """
    One manufacturer, one dealership, one vehicle and a user per role.
    """

    def __init__(self):
        self.manufacturer = make_manufacturer()
        self.dealership = make_dealership()

        self.admin = make_admin()
        self.evm = make_user("evm_staff", manufacturer=self.manufacturer)
        self.manager = make_user("dealer_manager", dealership=self.dealership)
        self.staff = make_user("dealer_staff", dealership=self.dealership)

        self.vehicle = make_vehicle(self.manufacturer, wholesale_price=800_000_000)
        self.customer = make_customer(self.dealership)
