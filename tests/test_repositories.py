# tests/test_repositories.py
import unittest

from db_helpers import DatabaseTestMixin
from snfoods.models.product import Category
from snfoods.repositories.account_repo import AccountRepository
from snfoods.repositories.product_repo import ProductRepository
from snfoods.repositories.profile_repo import ProfileRepository


class TestListQueries(DatabaseTestMixin, unittest.TestCase):
    """Listing methods return plain lists in a stable order."""

    def test_list_accounts(self):
        self.add_account("Zest Deli")
        self.add_account("Harbour Cafe")
        self.add_account("Closed Kiosk", is_active=False)
        repo = AccountRepository()

        active = repo.list_accounts(self.session)
        everything = repo.list_accounts(self.session, only_active=False)

        self.assertIsInstance(active, list)
        self.assertEqual([a.name for a in active], ["Harbour Cafe", "Zest Deli"])
        self.assertEqual(len(everything), 3)
        self.assertEqual(len(repo.list_accounts(self.session, skip=1, limit=1)), 1)

    def test_list_contacts_for_account(self):
        account = self.add_account()
        jane = self.add_profile("jane@example.com", "Jane")
        ben = self.add_profile("ben@example.com", "Ben")
        self.link(jane, account, minutes=5)
        self.link(ben, account, minutes=1)

        rows = AccountRepository().list_contacts_for_account(self.session, account.id)

        self.assertEqual([profile.email for _, profile in rows], ["ben@example.com", "jane@example.com"])

    def test_list_products_and_categories(self):
        dairy = self.add(Category(name="Dairy"))
        self.add(Category(name="Bakery"))
        self.add_product("Butter 1kg", category=dairy)
        self.add_product("Cream 2L", category=dairy, is_active=False)
        self.add_product("Bakers Flour 10kg")
        repo = ProductRepository()

        names = [p.name for p in repo.list_products(self.session)]
        in_dairy = repo.list_products(self.session, category_id=dairy.id, only_active=False)

        self.assertEqual(names, ["Bakers Flour 10kg", "Butter 1kg"])
        self.assertEqual(sorted(p.name for p in in_dairy), ["Butter 1kg", "Cream 2L"])
        self.assertEqual([c.name for c in repo.list_categories(self.session)], ["Bakery", "Dairy"])

    def test_list_profiles_by_role(self):
        self.add_profile("sam@snfoods.com.au", role="sales_admin")
        self.add_profile("jane@example.com")

        staff = ProfileRepository().list_profiles(self.session, role="sales_admin")

        self.assertEqual([p.email for p in staff], ["sam@snfoods.com.au"])


if __name__ == '__main__':
    unittest.main()
