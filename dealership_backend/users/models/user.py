"""
PATH: users/models/user.py

CUSTOM USER MODEL

Identity:
- email is the login identity (simplejwt obtains tokens with email + password).

Tenant links:
- dealer_manager / dealer_staff belong to exactly one Dealership.
- evm_staff belongs to exactly one Manufacturer.
- admin belongs to neither and sees everything.

The workflow layer reads the tenant from here, never from request data.
"""

from __future__ import annotations

import uuid

from django.contrib.auth.models import AbstractBaseUser, BaseUserManager, PermissionsMixin
from django.core.exceptions import ValidationError
from django.db import models


# ---------------- USER MANAGER ----------------
class UserManager(BaseUserManager):
    def create_user(self, email=None, password=None, **extra_fields):
        """
        Supports:
        - create_user(email="a@b.com", password="x", role="dealer_staff", dealership=d)
        - create_user(username="staff1", password="x")  (email becomes staff1@local.test)
        """
        username = (extra_fields.pop("username", "") or "").strip()

        if not email:
            if username:
                email = f"{username.lower()}@local.test"
            else:
                raise ValueError("An email address is required (or provide username=...)")

        email = self.normalize_email(email)
        extra_fields.setdefault("is_active", True)

        user = self.model(email=email, **extra_fields)

        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()

        user.full_clean(exclude=["password"])
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        if not password:
            raise ValueError("Superuser must have a password")

        extra_fields.setdefault("role", User.ROLE_ADMIN)
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)
        extra_fields.setdefault("is_active", True)

        if extra_fields.get("is_staff") is not True:
            raise ValueError("Superuser must have is_staff=True")
        if extra_fields.get("is_superuser") is not True:
            raise ValueError("Superuser must have is_superuser=True")

        return self.create_user(email=email, password=password, **extra_fields)


# ---------------- USER MODEL ----------------
class User(AbstractBaseUser, PermissionsMixin):
    ROLE_ADMIN = "admin"
    ROLE_EVM_STAFF = "evm_staff"
    ROLE_DEALER_MANAGER = "dealer_manager"
    ROLE_DEALER_STAFF = "dealer_staff"

    ROLE_CHOICES = [
        (ROLE_ADMIN, "Admin"),
        (ROLE_EVM_STAFF, "Manufacturer Staff"),
        (ROLE_DEALER_MANAGER, "Dealer Manager"),
        (ROLE_DEALER_STAFF, "Dealer Staff"),
    ]

    DEALER_ROLES = {ROLE_DEALER_MANAGER, ROLE_DEALER_STAFF}

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    email = models.EmailField(unique=True)

    first_name = models.CharField(max_length=100, blank=True)
    last_name = models.CharField(max_length=100, blank=True)
    phone = models.CharField(max_length=50, blank=True)

    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=ROLE_DEALER_STAFF)

    dealership = models.ForeignKey(
        "organizations.Dealership",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="users",
    )
    manufacturer = models.ForeignKey(
        "organizations.Manufacturer",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="users",
    )

    is_active = models.BooleanField(default=True)
    is_staff = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = UserManager()

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = []

    class Meta:
        ordering = ["-created_at"]

    def clean(self):
        if self.role in self.DEALER_ROLES and not self.dealership_id:
            raise ValidationError({"dealership": "Dealer users must belong to a dealership."})
        if self.role == self.ROLE_EVM_STAFF and not self.manufacturer_id:
            raise ValidationError({"manufacturer": "Manufacturer staff must belong to a manufacturer."})

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip() or self.email

    def __str__(self):
        return f"{self.email} ({self.role})"
