# core/concurrency.py

"""
PER-AGGREGATE SERIALIZATION

Two layers, both used by every ledger/state-machine write:
1) lock_for_update(): SELECT ... FOR UPDATE inside the caller's transaction.
2) guarded_update(): UPDATE ... WHERE pk = x AND version = n [AND guard],
   bumping version. Zero rows -> ConcurrentModification (caller may retry).

Databases without row locks (sqlite in tests) still get correctness from (2).
"""

from __future__ import annotations

from django.db import transaction
from django.db.models import F, Q
from django.utils import timezone

from core.exceptions import ConcurrentModification, NotFound


def lock_for_update(queryset, *, label: str = "record", **lookup):
    """Load one row with a row lock. Must run inside transaction.atomic()."""
    if not transaction.get_connection().in_atomic_block:
        raise RuntimeError("lock_for_update() must be called inside transaction.atomic()")

    try:
        return queryset.select_for_update().get(**lookup)
    except queryset.model.DoesNotExist as exc:
        raise NotFound(f"{label} not found") from exc


def guarded_update(instance, *, guard: Q | None = None, **changes) -> None:
    """
    Persist `changes` on `instance` only if nobody else bumped its version.

    Updates the in-memory instance on success. QuerySet.update() skips
    auto_now, so updated_at is stamped here for models that carry it.
    """
    model = instance.__class__
    expected_version = int(instance.version)

    if "updated_at" not in changes and any(f.name == "updated_at" for f in model._meta.concrete_fields):
        changes["updated_at"] = timezone.now()

    qs = model.objects.filter(pk=instance.pk, version=expected_version)
    if guard is not None:
        qs = qs.filter(guard)

    updated = qs.update(version=F("version") + 1, **changes)
    if updated != 1:
        raise ConcurrentModification(
            f"{model.__name__} {instance.pk} was modified concurrently; retry the operation.",
            details={"expected_version": expected_version},
        )

    instance.refresh_from_db()
