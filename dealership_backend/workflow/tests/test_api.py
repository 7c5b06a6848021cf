# workflow/tests/test_api.py

from datetime import timedelta

from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase
from django.utils import timezone
from rest_framework.test import APIClient

from core.tests.factories import WorkflowWorld, make_customer, make_dealership, make_user, stock_manufacturer
from orders.models import Order
from vehicles.models import StockEntry


class ApiTestBase(TestCase):
    def setUp(self):
        self.w = WorkflowWorld()
        self.client = APIClient()

    def login(self, user):
        self.client.force_authenticate(user=user)

    def create_order(self, quantity=1):
        self.login(self.w.staff)
        res = self.client.post(
            "/api/orders/",
            {
                "customer_id": str(self.w.customer.id),
                "items": [{"vehicle_id": str(self.w.vehicle.id), "color": "Red", "quantity": quantity}],
            },
            format="json",
        )
        self.assertEqual(res.status_code, 201, res.data)
        return res.data["data"]


class OrderApiTests(ApiTestBase):
    def test_anonymous_is_rejected_with_envelope(self):
        res = self.client.get("/api/orders/")
        self.assertEqual(res.status_code, 401)
        self.assertFalse(res.data["success"])
        self.assertEqual(res.data["error"]["code"], "not_authenticated")

    def test_create_and_list(self):
        order = self.create_order(quantity=2)
        self.assertEqual(order["status"], Order.Status.PENDING)
        self.assertEqual(order["final_amount"], 2 * 1_000_000_000)

        res = self.client.get("/api/orders/")
        self.assertTrue(res.data["success"])
        self.assertEqual(res.data["data"]["count"], 1)
        self.assertEqual(res.data["data"]["results"][0]["id"], order["id"])

    def test_invalid_payload_is_a_validation_error(self):
        self.login(self.w.staff)
        res = self.client.post("/api/orders/", {"customer_id": str(self.w.customer.id), "items": []}, format="json")

        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.data["error"]["code"], "validation_error")

    def test_skipping_steps_returns_409(self):
        order = self.create_order()
        res = self.client.post(f"/api/orders/{order['id']}/deposit/", {}, format="json")

        self.assertEqual(res.status_code, 409)
        self.assertEqual(res.data["error"]["code"], "invalid_transition")

    def test_full_flow_over_http(self):
        stock_manufacturer(self.w.vehicle, "Red", 1)
        order = self.create_order()
        base = f"/api/orders/{order['id']}"

        self.assertEqual(self.client.post(f"{base}/confirm/", {}, format="json").status_code, 200)

        upload = self.client.post(
            f"{base}/contract/upload/",
            {"files": [SimpleUploadedFile("signed.pdf", b"%PDF-1.4", content_type="application/pdf")]},
            format="multipart",
        )
        self.assertEqual(upload.status_code, 200, upload.data)
        self.assertEqual(upload.data["data"]["succeeded"], ["signed.pdf"])

        deposit = self.client.post(f"{base}/deposit/", {"idempotency_key": "dep-1"}, format="json")
        self.assertEqual(deposit.data["data"]["order"]["status"], Order.Status.HALF_PAYMENT)

        full = self.client.post(f"{base}/full-payment/", {"method": "bank"}, format="json")
        self.assertEqual(full.data["data"]["order"]["status"], Order.Status.FULLY_PAYMENT)

        delivered = self.client.post(
            f"{base}/deliver/",
            {"recipient": {"name": "Nguyen Van A", "phone": "0900000000"}},
            format="json",
        )
        self.assertEqual(delivered.data["data"]["status"], Order.Status.DELIVERED)

        early = self.client.post(f"{base}/complete/", {}, format="json")
        self.assertEqual(early.status_code, 409)
        self.assertEqual(early.data["error"]["code"], "too_early")
        self.assertGreater(early.data["error"]["details"]["remaining_seconds"], 0)

        Order.objects.filter(pk=order["id"]).update(delivered_at=timezone.now() - timedelta(hours=25))
        done = self.client.post(f"{base}/complete/", {}, format="json")
        self.assertEqual(done.data["data"]["status"], Order.Status.COMPLETED)

        history = self.client.get(f"{base}/history/")
        self.assertEqual(history.data["data"]["replayed_status"], Order.Status.COMPLETED)
        self.assertEqual(len(history.data["data"]["events"]), 6)

    def test_dealer_staff_cannot_cancel(self):
        order = self.create_order()
        res = self.client.post(f"/api/orders/{order['id']}/cancel/", {"reason": "x"}, format="json")
        self.assertEqual(res.status_code, 403)
        self.assertEqual(res.data["error"]["code"], "forbidden_transition")


class TenantScopingTests(ApiTestBase):
    def setUp(self):
        super().setUp()
        self.order = self.create_order()

        other = make_dealership("Dealer Saigon")
        self.stranger = make_user("dealer_manager", dealership=other)
        make_customer(other, full_name="Tran Thi B")

    def test_other_dealership_cannot_read(self):
        self.login(self.stranger)

        listed = self.client.get("/api/orders/")
        self.assertEqual(listed.data["data"]["count"], 0)

        res = self.client.get(f"/api/orders/{self.order['id']}/")
        self.assertEqual(res.status_code, 404)
        self.assertEqual(res.data["error"]["code"], "not_found")

    def test_other_dealership_cannot_write(self):
        self.login(self.stranger)
        res = self.client.post(f"/api/orders/{self.order['id']}/confirm/", {}, format="json")

        self.assertEqual(res.status_code, 403)
        self.assertEqual(Order.objects.get(pk=self.order["id"]).status, Order.Status.PENDING)

    def test_customers_are_scoped(self):
        self.login(self.w.staff)
        res = self.client.get("/api/orders/customers/")
        names = [c["full_name"] for c in res.data["data"]["results"]]
        self.assertEqual(names, [self.w.customer.full_name])

    def test_admin_sees_everything(self):
        self.login(self.w.admin)
        res = self.client.get(f"/api/orders/{self.order['id']}/")
        self.assertEqual(res.status_code, 200)


class StockApiTests(ApiTestBase):
    def test_manufacturer_receives_into_own_pool(self):
        self.login(self.w.evm)
        res = self.client.post(
            "/api/vehicles/stock/receive/",
            {"vehicle_id": str(self.w.vehicle.id), "color": "Blue", "quantity": 4},
            format="json",
        )

        self.assertEqual(res.status_code, 201, res.data)
        entry = StockEntry.objects.get(pk=res.data["data"]["id"])
        self.assertEqual(entry.owner_type, StockEntry.OwnerType.MANUFACTURER)
        self.assertEqual(entry.owner_id, self.w.manufacturer.id)
        self.assertEqual(entry.total_quantity, 4)

    def test_dealer_cannot_receive(self):
        self.login(self.w.manager)
        res = self.client.post(
            "/api/vehicles/stock/receive/",
            {"vehicle_id": str(self.w.vehicle.id), "color": "Blue", "quantity": 1},
            format="json",
        )
        self.assertEqual(res.status_code, 403)

    def test_vehicle_stock_is_scoped_to_the_caller(self):
        stock_manufacturer(self.w.vehicle, "Red", 1)
        url = f"/api/vehicles/{self.w.vehicle.id}/stock/"

        self.login(self.w.evm)
        res = self.client.get(url)
        self.assertEqual(res.status_code, 200)
        self.assertEqual([row["color"] for row in res.data["data"]["colors"]], ["Red"])

        # dealer sees only its own slice
        self.login(self.w.staff)
        res = self.client.get(url)
        self.assertEqual(res.data["data"]["colors"], [])
        self.assertEqual(res.data["data"]["summary"]["remaining"], 0)


class MeApiTests(ApiTestBase):
    def test_me_reports_tenant_and_capabilities(self):
        self.login(self.w.manager)
        res = self.client.get("/api/auth/me/")

        data = res.data["data"]
        self.assertEqual(data["role"], "dealer_manager")
        self.assertEqual(str(data["dealership_id"]), str(self.w.dealership.id))
        self.assertIn("requests.approve", data["capabilities"])
        self.assertNotIn("requests.fulfil", data["capabilities"])


class RequestAndDebtApiTests(ApiTestBase):
    def submit(self):
        self.login(self.w.staff)
        res = self.client.post(
            "/api/vehicle-requests/",
            {"items": [{"vehicle_id": str(self.w.vehicle.id), "color": "Red", "quantity": 2}]},
            format="json",
        )
        self.assertEqual(res.status_code, 201, res.data)
        return res.data["data"]["id"]

    def test_request_to_debt_payment(self):
        request_id = self.submit()
        base = f"/api/vehicle-requests/{request_id}"

        self.login(self.w.manager)
        self.assertEqual(self.client.post(f"{base}/approve/", {}, format="json").status_code, 200)

        self.login(self.w.evm)
        self.assertEqual(self.client.post(f"{base}/in-progress/", {}, format="json").status_code, 200)
        delivered = self.client.post(f"{base}/delivered/", {}, format="json")
        self.assertEqual(delivered.data["data"]["status"], "delivered")

        self.login(self.w.manager)
        debts = self.client.get("/api/debts/manufacturers/")
        self.assertEqual(debts.data["data"]["summary"]["remaining_amount"], 1_600_000_000)
        debt_id = debts.data["data"]["results"][0]["id"]

        paid = self.client.post(
            f"/api/debts/manufacturers/{debt_id}/payment/",
            {"amount": 600_000_000, "method": "bank"},
            format="json",
        )
        self.assertEqual(paid.status_code, 201, paid.data)
        self.assertEqual(paid.data["data"]["debt"]["status"], "partial")

        too_much = self.client.post(
            f"/api/debts/manufacturers/{debt_id}/payment/",
            {"amount": 2_000_000_000},
            format="json",
        )
        self.assertEqual(too_much.status_code, 409)
        self.assertEqual(too_much.data["error"]["code"], "insufficient_balance")

        partial = self.client.get("/api/debts/manufacturers/?status=partial")
        self.assertEqual(len(partial.data["data"]["results"]), 1)

    def test_unknown_debt_status_filter_is_rejected(self):
        self.login(self.w.manager)
        res = self.client.get("/api/debts/manufacturers/?status=overdue")
        self.assertEqual(res.status_code, 400)

    def test_staff_approval_is_forbidden(self):
        request_id = self.submit()
        res = self.client.post(f"/api/vehicle-requests/{request_id}/approve/", {}, format="json")
        self.assertEqual(res.status_code, 403)


class QuoteApiTests(ApiTestBase):
    def create_quote(self):
        self.login(self.w.staff)
        res = self.client.post(
            "/api/orders/quotes/",
            {
                "customer_id": str(self.w.customer.id),
                "items": [{"vehicle_id": str(self.w.vehicle.id), "color": "Red", "quantity": 2}],
            },
            format="json",
        )
        self.assertEqual(res.status_code, 201, res.data)
        return res.data["data"]

    def test_create_and_list(self):
        quote = self.create_quote()
        self.assertEqual(quote["status"], "valid")
        self.assertEqual(quote["final_amount"], 2 * 1_000_000_000)
        self.assertIsNone(quote["order_id"])

        res = self.client.get("/api/orders/quotes/?status=valid")
        self.assertEqual(res.data["data"]["count"], 1)

        res = self.client.get("/api/orders/quotes/?status=expired")
        self.assertEqual(res.data["data"]["count"], 0)

    def test_convert_over_http(self):
        quote = self.create_quote()

        res = self.client.post(f"/api/orders/quotes/{quote['id']}/convert/", {"payment_method": "installment"}, format="json")
        self.assertEqual(res.status_code, 201, res.data)
        self.assertEqual(res.data["data"]["status"], Order.Status.PENDING)
        self.assertEqual(res.data["data"]["final_amount"], quote["final_amount"])
        self.assertEqual(res.data["data"]["payment_method"], "installment")

        detail = self.client.get(f"/api/orders/quotes/{quote['id']}/")
        self.assertEqual(detail.data["data"]["status"], "converted")
        self.assertEqual(detail.data["data"]["order_id"], res.data["data"]["id"])

        again = self.client.post(f"/api/orders/quotes/{quote['id']}/convert/", {}, format="json")
        self.assertEqual(again.status_code, 409)
        self.assertEqual(again.data["error"]["code"], "invalid_transition")
        self.assertEqual(Order.objects.count(), 1)

    def test_other_dealership_cannot_convert(self):
        quote = self.create_quote()

        self.login(make_user("dealer_manager", dealership=make_dealership("Dealer Saigon")))
        res = self.client.post(f"/api/orders/quotes/{quote['id']}/convert/", {}, format="json")

        self.assertEqual(res.status_code, 403)
        self.assertFalse(Order.objects.exists())
