# tests/test_accounts.py
import unittest
import uuid
from unittest.mock import MagicMock

import httpx
import pydantic

from db_helpers import DatabaseTestMixin
from snfoods.core.errors import (
    DispatchError,
    NotFoundError,
    PermissionDeniedError,
    RemoteTimeoutError,
    ValidationError,
)
from snfoods.models.profile import Profile
from snfoods.repositories.account_repo import AccountRepository
from snfoods.repositories.profile_repo import ProfileRepository
from snfoods.schemas.account import AccountCreate, RelationshipUpsert
from snfoods.schemas.user import ProfileRoleUpdate, ProfileUpdate, UserInvite
from snfoods.services.account_service import AccountService
from snfoods.services.user_service import UserService


class TestAccountService(DatabaseTestMixin, unittest.TestCase):

    def setUp(self):
        super().setUp()
        self.numbers = MagicMock(return_value="ACC-2024-0005")
        self.service = AccountService(AccountRepository(), ProfileRepository(), self.numbers)
        self.staff = self.add_profile("sam@snfoods.com.au", role="sales_admin")
        self.buyer = self.add_profile("ben@harbour.example", "Ben")

    def test_create_account_gets_generated_number(self):
        account = self.service.create_account(
            self.session, AccountCreate(name="  Harbour Cafe ", account_type="business")
        )

        self.assertEqual(account.account_number, "ACC-2024-0005")
        self.assertEqual(account.name, "Harbour Cafe")
        self.assertTrue(account.is_active)

    def test_deactivate_is_soft(self):
        account = self.add_account()

        self.service.deactivate_account(self.session, account.id)

        self.assertFalse(self.service.get_account(self.session, account.id).is_active)
        self.assertEqual(self.service.list_accounts(self.session), [])
        self.assertEqual(len(self.service.list_accounts(self.session, include_inactive=True)), 1)

    def test_owner_link_implies_manage_rights(self):
        account = self.add_account()

        rel = self.service.link_contact(
            self.session,
            self.staff,
            account.id,
            RelationshipUpsert(contact_id=self.buyer.id, relationship_type="owner"),
        )

        self.assertTrue(rel.can_manage_account)
        mine = self.service.list_my_accounts(self.session, self.buyer)
        self.assertEqual([m.account.id for m in mine], [account.id])

    def test_relink_updates_existing_relationship(self):
        account = self.add_account()
        self.link(self.buyer, account, can_place_orders=True)

        rel = self.service.link_contact(
            self.session,
            self.staff,
            account.id,
            RelationshipUpsert(contact_id=self.buyer.id, can_place_orders=False),
        )

        self.assertFalse(rel.can_place_orders)
        contacts = self.service.list_contacts(self.session, self.staff, account.id)
        self.assertEqual(len(contacts), 1)
        self.assertEqual(contacts[0].contact_email, "ben@harbour.example")

    def test_member_cannot_manage(self):
        account = self.add_account()
        self.link(self.buyer, account)
        other = self.add_profile("olga@harbourcafe.com.au")

        with self.assertRaises(PermissionDeniedError):
            self.service.link_contact(
                self.session, self.buyer, account.id, RelationshipUpsert(contact_id=other.id)
            )

    def test_unlink(self):
        account = self.add_account()
        self.link(self.buyer, account)

        self.service.unlink_contact(self.session, self.staff, account.id, self.buyer.id)

        self.assertEqual(self.service.list_my_accounts(self.session, self.buyer), [])
        with self.assertRaises(NotFoundError):
            self.service.unlink_contact(self.session, self.staff, account.id, self.buyer.id)

    def test_unlinked_contact_cannot_see_account(self):
        account = self.add_account()
        with self.assertRaises(NotFoundError):
            self.service.get_account_for(self.session, self.buyer, account.id)


class TestUserService(DatabaseTestMixin, unittest.TestCase):

    def setUp(self):
        super().setUp()
        self.invited_id = uuid.uuid4()
        self.auth_client = MagicMock()
        self.auth_client.auth.admin.invite_user_by_email.return_value = MagicMock(
            user=MagicMock(id=str(self.invited_id))
        )
        self.service = UserService(ProfileRepository(), auth_admin=lambda: self.auth_client)
        self.admin = self.add_profile("root@snfoods.com.au", role="admin")
        self.jane = self.add_profile("jane@example.com", "Jane")

    def test_update_me(self):
        profile = self.service.update_me(
            self.session, self.jane, ProfileUpdate(company_name="Harbour Cafe")
        )
        self.assertEqual(profile.company_name, "Harbour Cafe")
        self.assertEqual(profile.full_name, "Jane")

    def test_promote_to_sales_admin(self):
        profile = self.service.update_role(
            self.session, self.admin, self.jane.id, ProfileRoleUpdate(role="sales_admin")
        )
        self.assertEqual(profile.role, "sales_admin")

    def test_admin_cannot_demote_self(self):
        with self.assertRaises(ValidationError):
            self.service.update_role(
                self.session, self.admin, self.admin.id, ProfileRoleUpdate(role="customer")
            )

    def test_list_by_role(self):
        admins = self.service.list_profiles(self.session, 0, 50, role="admin")
        self.assertEqual([p.email for p in admins], ["root@snfoods.com.au"])

    def invite(self, **overrides) -> UserInvite:
        fields = {"email": "olga@harbourcafe.com.au", "site_url": "https://shop.snfoods.com.au"}
        fields.update(overrides)
        return UserInvite(**fields)

    def test_invite_sends_link_and_provisions_profile(self):
        result = self.service.invite(
            self.session, self.admin, self.invite(full_name=" Olga ", role="sales_admin")
        )

        self.auth_client.auth.admin.invite_user_by_email.assert_called_once_with(
            "olga@harbourcafe.com.au",
            {
                "data": {"full_name": "Olga", "role": "sales_admin"},
                "redirect_to": "https://shop.snfoods.com.au/auth/confirm",
            },
        )
        self.assertEqual(result.user_id, self.invited_id)
        self.assertEqual(result.message, "Invitation sent successfully")
        profile = self.session.get(Profile, self.invited_id)
        self.assertEqual(profile.role, "sales_admin")
        self.assertEqual(profile.full_name, "Olga")

    def test_invite_defaults_to_customer(self):
        result = self.service.invite(self.session, self.admin, self.invite())

        self.assertEqual(result.role, "customer")
        data = self.auth_client.auth.admin.invite_user_by_email.call_args.args[1]["data"]
        self.assertEqual(data, {"full_name": "olga", "role": "customer"})

    def test_invite_existing_email(self):
        self.add_profile("kim@harbourcafe.com.au", "Kim")
        with self.assertRaises(ValidationError):
            self.service.invite(self.session, self.admin, self.invite(email="kim@harbourcafe.com.au"))
        self.auth_client.auth.admin.invite_user_by_email.assert_not_called()

    def test_invite_remote_failures(self):
        for error, expected in (
            (httpx.ReadTimeout("slow"), RemoteTimeoutError),
            (httpx.ConnectError("refused"), DispatchError),
        ):
            self.auth_client.auth.admin.invite_user_by_email.side_effect = error
            with self.subTest(error=type(error).__name__):
                with self.assertRaises(expected):
                    self.service.invite(self.session, self.admin, self.invite())
        self.assertIsNone(self.session.get(Profile, self.invited_id))

    def test_invite_rejects_bad_input(self):
        for overrides in (
            {"email": "not-an-email"},
            {"site_url": "shop.snfoods.com.au"},
            {"site_url": "ftp://shop.snfoods.com.au"},
            {"site_url": "https://shop.snfoods.com.au/?next=/admin"},
            {"role": "superuser"},
        ):
            with self.subTest(**overrides):
                with self.assertRaises(pydantic.ValidationError):
                    self.invite(**overrides)


if __name__ == '__main__':
    unittest.main()
