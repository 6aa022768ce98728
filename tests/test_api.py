# tests/test_api.py
import unittest
from decimal import Decimal
from unittest.mock import MagicMock, patch

from fastapi.testclient import TestClient

from db_helpers import DatabaseTestMixin
from snfoods.core.auth import get_current_profile
from snfoods.database import get_session
from snfoods.main import app
from snfoods.models.product import Category
from snfoods.routers import notifications as notifications_router
from snfoods.routers import orders as orders_router
from snfoods.routers import users as users_router

API = "/api/v1"


class ApiTestCase(DatabaseTestMixin, unittest.TestCase):

    def setUp(self):
        super().setUp()
        self.current = None
        app.dependency_overrides[get_session] = lambda: self.session
        app.dependency_overrides[get_current_profile] = lambda: self.current

        self.sender = MagicMock()
        for target, attribute, value in (
            (orders_router.service, "order_number_generator", MagicMock(return_value="ORD-2024-0100")),
            (orders_router.notifier, "sender", self.sender),
            (notifications_router.service, "sender", self.sender),
        ):
            patcher = patch.object(target, attribute, value)
            patcher.start()
            self.addCleanup(patcher.stop)

        self.client = TestClient(app)

        self.customer = self.add_profile("jane@example.com", "Jane Doe")
        self.staff = self.add_profile("sam@snfoods.com.au", "Sam", role="sales_admin")
        self.flour = self.add_product("Bakers Flour 10kg", price="120.00", unit="bag")
        self.butter = self.add_product("Butter 1kg", price="14.00")

    def tearDown(self):
        app.dependency_overrides.clear()
        super().tearDown()

    def place_order(self) -> dict:
        self.current = self.customer
        response = self.client.post(
            f"{API}/orders",
            json={
                "items": [
                    {"product_id": str(self.flour.id), "unit_price": "120.00", "quantity": 2},
                    {"product_id": str(self.butter.id), "unit_price": "14.00", "quantity": 3},
                ],
                "notes": "Back door",
            },
        )
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()


class TestOrderEndpoints(ApiTestCase):

    def test_health(self):
        self.assertEqual(self.client.get("/").json()["status"], "ok")

    def test_anonymous_cannot_order(self):
        response = self.client.post(f"{API}/orders", json={"items": []})
        self.assertEqual(response.status_code, 401)

    def test_create_order(self):
        body = self.place_order()

        self.assertEqual(body["order_number"], "ORD-2024-0100")
        self.assertEqual(body["status"], "pending")
        self.assertEqual(Decimal(body["subtotal"]), Decimal("282.00"))
        self.assertEqual(Decimal(body["tax_amount"]), Decimal("28.20"))
        self.assertEqual(Decimal(body["total_amount"]), Decimal("310.20"))
        self.assertEqual(len(body["items"]), 2)

    def test_empty_cart(self):
        self.current = self.customer
        response = self.client.post(f"{API}/orders", json={"items": []})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"], "empty cart")

    def test_non_positive_quantity(self):
        self.current = self.customer
        response = self.client.post(
            f"{API}/orders",
            json={"items": [{"product_id": str(self.butter.id), "unit_price": "14.00", "quantity": 0}]},
        )
        self.assertEqual(response.status_code, 422)

    def test_my_orders(self):
        order = self.place_order()

        listed = self.client.get(f"{API}/orders/me").json()
        self.assertEqual([o["id"] for o in listed], [order["id"]])

        detail = self.client.get(f"{API}/orders/me/{order['id']}")
        self.assertEqual(detail.status_code, 200)
        self.assertEqual(len(detail.json()["items"]), 2)

    def test_other_customers_order_is_hidden(self):
        order = self.place_order()
        self.current = self.add_profile("eve@example.com")

        response = self.client.get(f"{API}/orders/me/{order['id']}")
        self.assertEqual(response.status_code, 404)


class TestApprovalEndpoints(ApiTestCase):

    def test_customer_cannot_approve(self):
        order = self.place_order()

        response = self.client.patch(
            f"{API}/orders/{order['id']}/status", json={"status": "approved"}
        )
        self.assertEqual(response.status_code, 403)

    def test_staff_approves_once(self):
        order = self.place_order()
        self.current = self.staff

        response = self.client.patch(
            f"{API}/orders/{order['id']}/status",
            json={"status": "approved", "notes": "ok"},
        )
        self.assertEqual(response.status_code, 200, response.text)
        body = response.json()
        self.assertEqual(body["order"]["status"], "approved")
        self.assertEqual(body["order"]["approved_by"], str(self.staff.id))
        self.assertTrue(body["notification"]["sent"])
        self.assertEqual(body["notification"]["recipient_email"], "jane@example.com")
        self.sender.assert_called_once()

        again = self.client.patch(
            f"{API}/orders/{order['id']}/status", json={"status": "rejected"}
        )
        self.assertEqual(again.status_code, 409)
        self.sender.assert_called_once()

        history = self.client.get(f"{API}/orders/{order['id']}/history").json()
        self.assertEqual([h["new_status"] for h in history], ["pending", "approved"])

    def test_only_decisions_accepted(self):
        order = self.place_order()
        self.current = self.staff

        response = self.client.patch(
            f"{API}/orders/{order['id']}/status", json={"status": "shipped"}
        )
        self.assertEqual(response.status_code, 422)

    def test_staff_listing_filters_by_status(self):
        self.place_order()
        self.current = self.staff

        pending = self.client.get(f"{API}/orders", params={"status": "pending"}).json()
        approved = self.client.get(f"{API}/orders", params={"status": "approved"}).json()
        self.assertEqual(len(pending), 1)
        self.assertEqual(approved, [])


class TestNotificationEndpoint(ApiTestCase):

    def test_missing_order_payload(self):
        self.current = self.staff
        response = self.client.post(f"{API}/notifications/order-approved", json={})
        self.assertEqual(response.status_code, 400)

    def test_record_payload(self):
        order = self.place_order()
        self.current = self.staff
        self.client.patch(f"{API}/orders/{order['id']}/status", json={"status": "approved"})
        self.sender.reset_mock()

        response = self.client.post(
            f"{API}/notifications/order-approved",
            json={"record": {"id": order["id"], "order_number": order["order_number"]}},
        )

        self.assertEqual(response.status_code, 200, response.text)
        self.assertEqual(response.json()["recipient_email"], "jane@example.com")
        self.sender.assert_called_once()

    def test_pending_order_is_not_emailed(self):
        order = self.place_order()
        self.current = self.staff

        response = self.client.post(
            f"{API}/notifications/order-approved",
            json={"record": {"id": order["id"], "order_number": order["order_number"]}},
        )

        self.assertEqual(response.status_code, 409)
        self.sender.assert_not_called()

    def test_no_recipient_is_unprocessable(self):
        account = self.add_account()
        order = self.add_order(self.customer, account=account, status="approved", number="ORD-2024-0007")
        self.current = self.staff

        response = self.client.post(
            f"{API}/notifications/order-approved",
            json={"record": {"id": str(order.id), "order_number": order.order_number}},
        )

        self.assertEqual(response.status_code, 422)
        self.sender.assert_not_called()

    def test_customer_cannot_trigger(self):
        self.current = self.customer
        response = self.client.post(f"{API}/notifications/order-approved", json={"order": {}})
        self.assertEqual(response.status_code, 403)


class TestCatalogAndStats(ApiTestCase):

    def test_catalog_hides_inactive_products(self):
        self.add_product("Discontinued", is_active=False)
        bakery = self.add(Category(name="Bakery"))
        self.add_product("Sourdough Loaf", price="6.50", category=bakery)

        names = [p["name"] for p in self.client.get(f"{API}/products").json()]
        self.assertEqual(names, ["Bakers Flour 10kg", "Butter 1kg", "Sourdough Loaf"])

        in_bakery = self.client.get(f"{API}/products", params={"category_id": str(bakery.id)}).json()
        self.assertEqual([p["name"] for p in in_bakery], ["Sourdough Loaf"])

        categories = self.client.get(f"{API}/categories").json()
        self.assertEqual([c["name"] for c in categories], ["Bakery"])

    def test_admin_stats(self):
        order = self.place_order()
        self.current = self.staff
        self.client.patch(f"{API}/orders/{order['id']}/status", json={"status": "approved"})

        stats = self.client.get(f"{API}/admin/stats").json()

        self.assertEqual(stats["total_orders"], 1)
        self.assertEqual(stats["pending_orders"], 0)
        self.assertEqual(stats["total_products"], 2)
        self.assertEqual(stats["total_users"], 2)
        self.assertEqual(Decimal(stats["total_revenue"]), Decimal("310.20"))

    def test_stats_require_staff(self):
        self.current = self.customer
        self.assertEqual(self.client.get(f"{API}/admin/stats").status_code, 403)


class TestInviteEndpoint(ApiTestCase):

    def setUp(self):
        super().setUp()
        self.auth_client = MagicMock()
        self.auth_client.auth.admin.invite_user_by_email.return_value = MagicMock(
            user=MagicMock(id="0f6a8f0e-3c1b-4d7e-9b1a-2e5c7d9f1a22")
        )
        patcher = patch.object(users_router.service, "auth_admin", lambda: self.auth_client)
        patcher.start()
        self.addCleanup(patcher.stop)
        self.admin = self.add_profile("root@snfoods.com.au", "Root", role="admin")
        self.body = {"email": "olga@harbourcafe.com.au", "site_url": "https://shop.snfoods.com.au"}

    def test_admin_invites(self):
        self.current = self.admin

        response = self.client.post(f"{API}/users/invite", json=self.body)

        self.assertEqual(response.status_code, 201, response.text)
        self.assertEqual(response.json()["user_id"], "0f6a8f0e-3c1b-4d7e-9b1a-2e5c7d9f1a22")
        self.assertEqual(response.json()["role"], "customer")

    def test_non_admins_cannot_invite(self):
        for actor in (self.customer, self.staff):
            self.current = actor
            response = self.client.post(f"{API}/users/invite", json=self.body)
            self.assertEqual(response.status_code, 403)
        self.auth_client.auth.admin.invite_user_by_email.assert_not_called()

    def test_site_url_is_required(self):
        self.current = self.admin

        response = self.client.post(
            f"{API}/users/invite", json={"email": "olga@harbourcafe.com.au"}
        )

        self.assertEqual(response.status_code, 422)
        self.auth_client.auth.admin.invite_user_by_email.assert_not_called()


if __name__ == '__main__':
    unittest.main()
