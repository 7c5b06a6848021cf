# core/history.py

"""
STATUS HISTORY SERVICE

- append_event(): called inside the same transaction as the state change,
  while the caller holds the aggregate row lock (sequence = last + 1).
- get_history(): forward-chronological, replayable log (UI timeline).
- replay_status(): folds a log through a transition table and returns the
  status it ends in.
"""

from __future__ import annotations

from typing import Iterable, Mapping

from django.db import IntegrityError, transaction
from django.db.models import Max

from core.exceptions import ConcurrentModification, InvalidTransition
from core.models import StatusHistoryEvent


def append_event(
    *,
    entity_type: str,
    entity_id,
    old_status: str,
    new_status: str,
    actor=None,
    notes: str = "",
    payload: dict | None = None,
) -> StatusHistoryEvent:
    last = (
        StatusHistoryEvent.objects.filter(entity_type=entity_type, entity_id=entity_id)
        .aggregate(last=Max("sequence"))
        .get("last")
    )
    sequence = int(last or 0) + 1

    try:
        with transaction.atomic():
            return StatusHistoryEvent.objects.create(
                entity_type=entity_type,
                entity_id=entity_id,
                sequence=sequence,
                old_status=old_status or "",
                new_status=new_status,
                actor=actor if getattr(actor, "pk", None) else None,
                actor_role=str(getattr(actor, "role", "") or ""),
                notes=(notes or "").strip(),
                payload=payload or {},
            )
    except IntegrityError as exc:
        raise ConcurrentModification(
            f"History for {entity_type} {entity_id} was modified concurrently."
        ) from exc


def get_history(*, entity_type: str, entity_id) -> list[StatusHistoryEvent]:
    return list(
        StatusHistoryEvent.objects.filter(entity_type=entity_type, entity_id=entity_id)
        .select_related("actor")
        .order_by("sequence")
    )


def replay_status(
    events: Iterable,
    *,
    transitions: Mapping[str, set[str]],
    initial_status: str,
) -> str:
    """
    Deterministically rebuild the current status from a history log.

    The first event must create the entity ('' -> initial_status); every
    following event must start where the previous one ended and be a legal
    transition.
    """
    current = ""
    for event in events:
        old_status = event.old_status or ""
        new_status = event.new_status

        if old_status != current:
            raise InvalidTransition(
                "History is not contiguous.",
                current=current,
                requested=new_status,
                details={"sequence": getattr(event, "sequence", None)},
            )

        if current == "":
            if new_status != initial_status:
                raise InvalidTransition(
                    "History must start in the initial status.",
                    current=current,
                    requested=new_status,
                )
        elif new_status not in transitions.get(current, set()):
            raise InvalidTransition(current=current, requested=new_status)

        current = new_status

    return current
