# workflow/orchestrator.py

"""
======================================================
PATH: workflow/orchestrator.py
======================================================
WORKFLOW ORCHESTRATOR

The only entry point the API layer uses to change workflow state.

Every operation:
1) resolves tenant + capabilities from the authenticated user (ActorContext)
2) checks role / ownership            -> ForbiddenTransition
3) runs inside ONE transaction.atomic() (multi-ledger steps commit together)
4) translates Django ValidationError / IntegrityError into core.exceptions
5) logs start / success / failure with structured extra

Reads (visible_*) are tenant-scoped querysets; an entity outside the
actor's tenant is NotFound for reads and ForbiddenTransition for writes.
======================================================
"""

from __future__ import annotations

import functools
import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, transaction

from core.exceptions import (
    ConcurrentModification,
    ForbiddenTransition,
    NotFound,
    ValidationError,
    WorkflowError,
)
from debts.models import ManufacturerDebt
from debts.services import debt_ledger
from orders.models import Customer, Order, Quote
from orders.services import order_fulfillment, quote_service
from organizations.models import Dealership
from permissions.roles import (
    CAP_DEBTS_PAY,
    CAP_DEBTS_VIEW,
    CAP_ORDERS_CANCEL,
    CAP_ORDERS_MANAGE,
    CAP_ORDERS_VIEW,
    CAP_REQUESTS_APPROVE,
    CAP_REQUESTS_FULFIL,
    CAP_REQUESTS_SUBMIT,
    CAP_REQUESTS_VIEW,
    CAP_STOCK_MANAGE,
)
from vehicle_requests.models import DealerVehicleRequest
from vehicle_requests.services import request_fulfillment
from vehicles.models import StockEntry, Vehicle
from vehicles.services import stock_ledger
from workflow.context import ActorContext


logger = logging.getLogger("workflow")


def workflow_operation(name: str):
    def decorator(func):
        @functools.wraps(func)
        def wrapper(self, *args, **kwargs):
            extra = {
                "operation": name,
                "actor_id": str(getattr(self.actor.user, "pk", "") or ""),
                "actor_role": self.actor.role,
            }
            logger.info("workflow.started", extra=extra)

            try:
                with transaction.atomic():
                    result = func(self, *args, **kwargs)
            except WorkflowError as exc:
                logger.warning(
                    "workflow.failed",
                    extra={**extra, "code": exc.code, "error": exc.message},
                )
                raise
            except DjangoValidationError as exc:
                logger.warning(
                    "workflow.failed",
                    extra={**extra, "code": ValidationError.code, "error": "; ".join(exc.messages)},
                )
                raise ValidationError("; ".join(exc.messages)) from exc
            except IntegrityError as exc:
                logger.warning(
                    "workflow.failed",
                    extra={**extra, "code": ConcurrentModification.code, "error": str(exc)},
                )
                raise ConcurrentModification(
                    "The record changed while saving; retry the operation."
                ) from exc

            logger.info("workflow.succeeded", extra=extra)
            return result

        return wrapper

    return decorator


def _get(queryset, pk, *, label: str):
    try:
        return queryset.get(pk=pk)
    except (queryset.model.DoesNotExist, DjangoValidationError, ValueError, TypeError) as exc:
        raise NotFound(f"{label} not found.", details={"id": str(pk)}) from exc


class WorkflowOrchestrator:
    def __init__(self, actor: ActorContext):
        self.actor = actor

    @property
    def user(self):
        return self.actor.user

    # ======================================================
    # SCOPED READS
    # ======================================================

    def visible_orders(self):
        self.actor.require(CAP_ORDERS_VIEW)
        qs = Order.objects.select_related("customer", "salesperson", "dealership")
        if self.actor.is_admin:
            return qs
        return qs.filter(dealership_id=self.actor.require_dealership())

    def visible_customers(self):
        self.actor.require(CAP_ORDERS_VIEW)
        qs = Customer.objects.all()
        if self.actor.is_admin:
            return qs
        return qs.filter(dealership_id=self.actor.require_dealership())

    def visible_quotes(self):
        self.actor.require(CAP_ORDERS_VIEW)
        qs = Quote.objects.select_related("customer", "dealership", "created_by")
        if self.actor.is_admin:
            return qs
        return qs.filter(dealership_id=self.actor.require_dealership())

    def visible_requests(self):
        self.actor.require(CAP_REQUESTS_VIEW)
        qs = DealerVehicleRequest.objects.select_related("dealership", "manufacturer", "requested_by", "approved_by")
        if self.actor.is_admin:
            return qs
        if self.actor.is_manufacturer_staff:
            return qs.filter(manufacturer_id=self.actor.manufacturer_id)
        return qs.filter(dealership_id=self.actor.require_dealership())

    def visible_debts(self):
        self.actor.require(CAP_DEBTS_VIEW)
        qs = ManufacturerDebt.objects.select_related("dealership", "manufacturer")
        if self.actor.is_admin:
            return qs
        if self.actor.is_manufacturer_staff:
            return qs.filter(manufacturer_id=self.actor.manufacturer_id)
        return qs.filter(dealership_id=self.actor.require_dealership())

    def get_order(self, order_id) -> Order:
        return _get(self.visible_orders(), order_id, label="Order")

    def get_quote(self, quote_id) -> Quote:
        return _get(self.visible_quotes(), quote_id, label="Quote")

    def get_request(self, request_id) -> DealerVehicleRequest:
        return _get(self.visible_requests(), request_id, label="Vehicle request")

    def get_debt(self, debt_id) -> ManufacturerDebt:
        return _get(self.visible_debts(), debt_id, label="Debt")

    # ======================================================
    # OWNERSHIP GUARDS (WRITES)
    # ======================================================

    def _order_for_write(self, order_id, capability: str = CAP_ORDERS_MANAGE) -> Order:
        self.actor.require(capability)
        order = _get(Order.objects.all(), order_id, label="Order")
        if not self.actor.is_admin and order.dealership_id != self.actor.dealership_id:
            raise ForbiddenTransition("Order belongs to another dealership.")
        return order

    def _request_for_write(self, request_id) -> DealerVehicleRequest:
        return _get(DealerVehicleRequest.objects.all(), request_id, label="Vehicle request")

    def _require_dealer_manager_of(self, vehicle_request: DealerVehicleRequest) -> None:
        if self.actor.is_admin:
            return
        self.actor.require(CAP_REQUESTS_APPROVE)
        if not (self.actor.is_dealer_manager and self.actor.dealership_id == vehicle_request.dealership_id):
            raise ForbiddenTransition(
                "Only the dealer manager of this dealership can decide on the request."
            )

    def _require_manufacturer_of(self, vehicle_request: DealerVehicleRequest) -> None:
        if self.actor.is_admin:
            return
        self.actor.require(CAP_REQUESTS_FULFIL)
        if self.actor.manufacturer_id != vehicle_request.manufacturer_id:
            raise ForbiddenTransition("Request is addressed to another manufacturer.")

    # ======================================================
    # CUSTOMERS
    # ======================================================

    @workflow_operation("customer.create")
    def create_customer(self, *, full_name: str, phone: str = "", email: str = "", address: str = "", notes: str = "", dealership_id=None) -> Customer:
        self.actor.require(CAP_ORDERS_MANAGE)
        dealership = self._target_dealership(dealership_id)

        full_name = (full_name or "").strip()
        if not full_name:
            raise ValidationError("full_name is required")

        return Customer.objects.create(
            dealership=dealership,
            full_name=full_name,
            phone=(phone or "").strip(),
            email=(email or "").strip(),
            address=(address or "").strip(),
            notes=(notes or "").strip(),
        )

    def _target_dealership(self, dealership_id=None) -> Dealership:
        """Dealer users act for their own dealership; admins name one."""
        if self.actor.is_admin:
            if not dealership_id:
                raise ValidationError("dealership_id is required for admin actions.")
            return _get(Dealership.objects.filter(is_active=True), dealership_id, label="Dealership")
        return _get(Dealership.objects.all(), self.actor.require_dealership(), label="Dealership")

    # ======================================================
    # QUOTES
    # ======================================================

    def _quote_for_write(self, quote_id) -> Quote:
        self.actor.require(CAP_ORDERS_MANAGE)
        quote = _get(Quote.objects.all(), quote_id, label="Quote")
        if not self.actor.is_admin and quote.dealership_id != self.actor.dealership_id:
            raise ForbiddenTransition("Quote belongs to another dealership.")
        return quote

    @workflow_operation("quote.create")
    def create_quote(self, *, customer_id, items, start_date=None, end_date=None, notes: str = "") -> Quote:
        self.actor.require(CAP_ORDERS_MANAGE)
        customer = _get(Customer.objects.select_related("dealership"), customer_id, label="Customer")

        if not self.actor.is_admin and customer.dealership_id != self.actor.dealership_id:
            raise ForbiddenTransition("Customer belongs to another dealership.")

        return quote_service.create_quote(
            dealership=customer.dealership,
            customer=customer,
            created_by=self.user,
            items=items,
            start_date=start_date,
            end_date=end_date,
            notes=notes,
        )

    @workflow_operation("quote.convert")
    def convert_quote_to_order(self, *, quote_id, payment_method: str = "cash", notes: str = "") -> Order:
        quote = self._quote_for_write(quote_id)
        return quote_service.convert_to_order(
            quote=quote,
            salesperson=self.user,
            payment_method=payment_method,
            notes=notes,
        )

    @workflow_operation("quote.cancel")
    def cancel_quote(self, *, quote_id) -> Quote:
        return quote_service.cancel_quote(quote=self._quote_for_write(quote_id))

    # ======================================================
    # ORDERS
    # ======================================================

    @workflow_operation("order.create")
    def create_order(self, *, customer_id, items, payment_method: str = "cash", notes: str = "") -> Order:
        self.actor.require(CAP_ORDERS_MANAGE)
        customer = _get(Customer.objects.select_related("dealership"), customer_id, label="Customer")

        if not self.actor.is_admin and customer.dealership_id != self.actor.dealership_id:
            raise ForbiddenTransition("Customer belongs to another dealership.")

        return order_fulfillment.create_order(
            dealership=customer.dealership,
            customer=customer,
            salesperson=self.user,
            items=items,
            payment_method=payment_method,
            notes=notes,
        )

    @workflow_operation("order.confirm")
    def confirm_order(self, *, order_id, notes: str = "") -> Order:
        order = self._order_for_write(order_id)
        return order_fulfillment.confirm_order(order=order, user=self.user, notes=notes)

    @workflow_operation("order.contract.generate")
    def generate_contract(self, *, order_id, **contract_meta):
        order = self._order_for_write(order_id)
        return order_fulfillment.generate_contract(order=order, user=self.user, **contract_meta)

    @workflow_operation("order.contract.upload")
    def upload_signed_contract(self, *, order_id, files) -> dict:
        order = self._order_for_write(order_id)
        return order_fulfillment.upload_signed_contract(order=order, files=files, user=self.user)

    @workflow_operation("order.deposit")
    def record_deposit(self, *, order_id, **payment):
        order = self._order_for_write(order_id)
        return order_fulfillment.record_deposit(order=order, user=self.user, **payment)

    @workflow_operation("order.full_payment")
    def record_full_payment(self, *, order_id, **payment):
        order = self._order_for_write(order_id)
        return order_fulfillment.record_full_payment(order=order, user=self.user, **payment)

    @workflow_operation("order.reserve_stock")
    def reserve_order_stock(self, *, order_id):
        order = self._order_for_write(order_id)
        return order_fulfillment.reserve_order_stock(order=order, user=self.user)

    @workflow_operation("order.schedule_delivery")
    def schedule_delivery(self, *, order_id, scheduled_date, notes: str = "") -> Order:
        order = self._order_for_write(order_id)
        return order_fulfillment.schedule_delivery(
            order=order, scheduled_date=scheduled_date, user=self.user, notes=notes
        )

    @workflow_operation("order.deliver")
    def deliver_order(self, *, order_id, recipient, delivery_person=None, notes: str = "", actual_date=None) -> Order:
        order = self._order_for_write(order_id)
        return order_fulfillment.deliver(
            order=order,
            recipient=recipient,
            delivery_person=delivery_person,
            notes=notes,
            actual_date=actual_date,
            user=self.user,
        )

    @workflow_operation("order.complete")
    def complete_order(self, *, order_id, notes: str = "", now=None) -> Order:
        order = self._order_for_write(order_id)
        return order_fulfillment.complete(order=order, user=self.user, notes=notes, now=now)

    @workflow_operation("order.cancel")
    def cancel_order(self, *, order_id, reason: str) -> Order:
        order = self._order_for_write(order_id, capability=CAP_ORDERS_CANCEL)
        return order_fulfillment.cancel(order=order, reason=reason, user=self.user)

    def order_history(self, *, order_id) -> dict:
        order = self.get_order(order_id)
        events = order_fulfillment.get_order_history(order)
        return {
            "order": order,
            "events": events,
            "replayed_status": order_fulfillment.replay_order_status(events),
        }

    # ======================================================
    # DEALER VEHICLE REQUESTS
    # ======================================================

    @workflow_operation("request.submit")
    def submit_request(self, *, items, notes: str = "", order_id=None, dealership_id=None) -> DealerVehicleRequest:
        self.actor.require(CAP_REQUESTS_SUBMIT)
        dealership = self._target_dealership(dealership_id)

        order = None
        if order_id:
            order = _get(Order.objects.all(), order_id, label="Order")

        return request_fulfillment.submit_request(
            dealership=dealership,
            requested_by=self.user,
            items=items,
            notes=notes,
            order=order,
        )

    @workflow_operation("request.approve")
    def approve_request(self, *, request_id, notes: str = "") -> DealerVehicleRequest:
        vehicle_request = self._request_for_write(request_id)
        self._require_dealer_manager_of(vehicle_request)
        return request_fulfillment.approve(vehicle_request=vehicle_request, approver=self.user, notes=notes)

    @workflow_operation("request.reject")
    def reject_request(self, *, request_id, reason: str) -> DealerVehicleRequest:
        vehicle_request = self._request_for_write(request_id)
        self._require_dealer_manager_of(vehicle_request)
        return request_fulfillment.reject(vehicle_request=vehicle_request, reason=reason, approver=self.user)

    @workflow_operation("request.in_progress")
    def mark_request_in_progress(self, *, request_id, notes: str = "") -> DealerVehicleRequest:
        vehicle_request = self._request_for_write(request_id)
        self._require_manufacturer_of(vehicle_request)
        return request_fulfillment.mark_in_progress(vehicle_request=vehicle_request, user=self.user, notes=notes)

    @workflow_operation("request.delivered")
    def mark_request_delivered(self, *, request_id, delivered_at=None, notes: str = "") -> DealerVehicleRequest:
        vehicle_request = self._request_for_write(request_id)
        self._require_manufacturer_of(vehicle_request)
        return request_fulfillment.mark_delivered(
            vehicle_request=vehicle_request,
            user=self.user,
            delivered_at=delivered_at,
            notes=notes,
        )

    @workflow_operation("request.complete")
    def complete_request(self, *, request_id, notes: str = "") -> DealerVehicleRequest:
        vehicle_request = self._request_for_write(request_id)
        if not self.actor.is_admin:
            self.actor.require(CAP_REQUESTS_SUBMIT)
            if self.actor.dealership_id != vehicle_request.dealership_id:
                raise ForbiddenTransition("Request belongs to another dealership.")
        return request_fulfillment.complete(vehicle_request=vehicle_request, user=self.user, notes=notes)

    @workflow_operation("request.cancel")
    def cancel_request(self, *, request_id, reason: str) -> DealerVehicleRequest:
        vehicle_request = self._request_for_write(request_id)
        if not self.actor.is_admin:
            same_dealership = self.actor.dealership_id == vehicle_request.dealership_id
            is_requester = vehicle_request.requested_by_id == getattr(self.user, "pk", None)
            if not same_dealership or not (is_requester or self.actor.is_dealer_manager):
                raise ForbiddenTransition("Only the requester or their dealer manager can cancel the request.")
        return request_fulfillment.cancel(vehicle_request=vehicle_request, reason=reason, user=self.user)

    def request_history(self, *, request_id) -> dict:
        vehicle_request = self.get_request(request_id)
        events = request_fulfillment.get_request_history(vehicle_request)
        return {
            "request": vehicle_request,
            "events": events,
            "replayed_status": request_fulfillment.replay_request_status(events),
        }

    # ======================================================
    # STOCK
    # ======================================================

    @workflow_operation("stock.receive")
    def receive_stock(self, *, vehicle_id, color, quantity, owner_type=None, owner_id=None, notes: str = "") -> StockEntry:
        self.actor.require(CAP_STOCK_MANAGE)
        vehicle = _get(Vehicle.objects.all(), vehicle_id, label="Vehicle")

        if self.actor.is_admin:
            owner_type = owner_type or StockEntry.OwnerType.MANUFACTURER
            if owner_id is None:
                if owner_type != StockEntry.OwnerType.MANUFACTURER:
                    raise ValidationError("owner_id is required for dealer stock.")
                owner_id = vehicle.manufacturer_id
        else:
            if vehicle.manufacturer_id != self.actor.manufacturer_id:
                raise ForbiddenTransition("Vehicle belongs to another manufacturer.")
            owner_type = StockEntry.OwnerType.MANUFACTURER
            owner_id = self.actor.manufacturer_id

        return stock_ledger.receive(
            vehicle=vehicle,
            color=color,
            owner_type=owner_type,
            owner_id=owner_id,
            quantity=quantity,
            performed_by=self.user,
            notes=notes,
        )

    @workflow_operation("stock.adjust")
    def adjust_stock(self, *, entry_id, total_quantity, notes: str = "") -> StockEntry:
        self.actor.require(CAP_STOCK_MANAGE)
        entry = _get(StockEntry.objects.all(), entry_id, label="Stock entry")

        scope = self.actor.stock_scope()
        if scope and (entry.owner_type != scope["owner_type"] or entry.owner_id != scope["owner_id"]):
            raise ForbiddenTransition("Stock entry belongs to another owner.")

        return stock_ledger.adjust_total(
            entry=entry,
            new_total=total_quantity,
            performed_by=self.user,
            notes=notes,
        )

    # ======================================================
    # MANUFACTURER DEBT
    # ======================================================

    @workflow_operation("debt.payment")
    def record_debt_payment(
        self,
        *,
        debt_id,
        amount,
        method: str = "bank",
        notes: str = "",
        order_id=None,
        idempotency_key: str = "",
    ):
        self.actor.require(CAP_DEBTS_PAY)
        debt = _get(ManufacturerDebt.objects.all(), debt_id, label="Debt")
        if not self.actor.is_admin and debt.dealership_id != self.actor.dealership_id:
            raise ForbiddenTransition("Debt belongs to another dealership.")

        order = None
        if order_id:
            order = _get(Order.objects.all(), order_id, label="Order")

        return debt_ledger.record_payment(
            debt=debt,
            amount=amount,
            method=method,
            notes=notes,
            order=order,
            idempotency_key=idempotency_key,
            user=self.user,
        )

    def debt_payments(self, *, debt_id):
        debt = self.get_debt(debt_id)
        return debt, debt_ledger.get_payment_history(debt)

    def debt_summary(self, queryset=None) -> dict:
        return debt_ledger.debt_summary(queryset=queryset if queryset is not None else self.visible_debts())
