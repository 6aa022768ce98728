# tests/test_recipient_resolver.py
import unittest
import uuid

from db_helpers import DatabaseTestMixin
from snfoods.core.errors import NoRecipientError
from snfoods.repositories.account_repo import AccountRepository
from snfoods.repositories.profile_repo import ProfileRepository
from snfoods.schemas.notification import OrderSnapshot
from snfoods.services.notification_service import RecipientResolver


def snapshot(**owner) -> OrderSnapshot:
    return OrderSnapshot(id=uuid.uuid4(), order_number="ORD-2024-0007", **owner)


class TestRecipientResolver(DatabaseTestMixin, unittest.TestCase):

    def setUp(self):
        super().setUp()
        self.resolver = RecipientResolver(ProfileRepository(), AccountRepository())
        self.account = self.add_account()

    def test_customer_order_goes_to_customer(self):
        jane = self.add_profile("jane@example.com", "Jane Doe")

        recipient = self.resolver.resolve(self.session, snapshot(customer_id=jane.id))

        self.assertEqual(recipient.email, "jane@example.com")
        self.assertEqual(recipient.name, "Jane Doe")

    def test_missing_customer_profile(self):
        with self.assertRaises(NoRecipientError):
            self.resolver.resolve(self.session, snapshot(customer_id=uuid.uuid4()))

    def test_ordering_contact_wins_over_primary(self):
        primary = self.add_profile("owner@harbour.example", "Olive")
        buyer = self.add_profile("buyer@harbour.example", "Ben")
        self.link(primary, self.account, minutes=0, is_primary_contact=True)
        self.link(buyer, self.account, minutes=5)

        recipient = self.resolver.resolve(
            self.session,
            snapshot(account_id=self.account.id, ordered_by_contact_id=buyer.id),
        )

        self.assertEqual(recipient.email, "buyer@harbour.example")

    def test_primary_contact_when_orderer_is_not_linked(self):
        early = self.add_profile("early@harbour.example")
        primary = self.add_profile("primary@harbour.example")
        self.link(early, self.account, minutes=0)
        self.link(primary, self.account, minutes=10, is_primary_contact=True)

        recipient = self.resolver.resolve(
            self.session,
            snapshot(account_id=self.account.id, ordered_by_contact_id=uuid.uuid4()),
        )

        self.assertEqual(recipient.email, "primary@harbour.example")

    def test_earliest_contact_without_primary(self):
        late = self.add_profile("late@harbour.example")
        early = self.add_profile("early@harbour.example")
        self.link(late, self.account, minutes=30)
        self.link(early, self.account, minutes=1)

        recipient = self.resolver.resolve(self.session, snapshot(account_id=self.account.id))

        self.assertEqual(recipient.email, "early@harbour.example")

    def test_resolution_is_deterministic(self):
        for n in range(3):
            self.link(self.add_profile(f"c{n}@harbour.example"), self.account, minutes=n)

        picks = {
            self.resolver.resolve(self.session, snapshot(account_id=self.account.id)).email
            for _ in range(5)
        }
        self.assertEqual(picks, {"c0@harbour.example"})

    def test_account_without_contacts(self):
        with self.assertRaises(NoRecipientError):
            self.resolver.resolve(self.session, snapshot(account_id=self.account.id))

    def test_contact_profile_gone(self):
        ghost = self.add_profile("ghost@harbour.example")
        self.link(ghost, self.account)
        self.session.delete(ghost)
        self.session.commit()

        with self.assertRaises(NoRecipientError):
            self.resolver.resolve(self.session, snapshot(account_id=self.account.id))

    def test_order_without_owner(self):
        with self.assertRaises(NoRecipientError):
            self.resolver.resolve(self.session, snapshot())


if __name__ == '__main__':
    unittest.main()
