from fastapi import HTTPException

from tests.base import *  # noqa: F401,F403
from textile_backend.services.deactivation import (
    DeactivationRestriction,
    assert_can_deactivate,
    validate_deactivation_restrictions,
)

OPEN_QUOTATIONS = DeactivationRestriction(
    relation="quotations",
    message="El cliente tiene cotizaciones en curso",
    condition={"is_active": True, "status": {"in": ["DRAFT", "SENT"]}},
)
ACTIVE_CONTACTS = DeactivationRestriction(relation="contacts", message="El cliente tiene contactos activos")
ACTIVE_CUSTOMER = DeactivationRestriction(
    relation="customer",
    message="El cliente del contacto sigue activo",
    is_single_relation=True,
)


class DeactivationTests(DatabaseTestCase):
    def setUp(self):
        super().setUp()
        self.customer = self.add_customer("Acme Textil")

    def test_predicate_shape(self):
        self.assertEqual(ACTIVE_CONTACTS.predicate(), {"contacts": {"some": {"is_active": True}}})
        self.assertEqual(ACTIVE_CUSTOMER.predicate(), {"customer": {"is_active": True}})

    def test_no_related_rows(self):
        check = validate_deactivation_restrictions(self.db, Customer, self.customer.id, [OPEN_QUOTATIONS, ACTIVE_CONTACTS])
        self.assertTrue(check.can_deactivate)
        self.assertEqual(check.violations, [])

    def test_inactive_or_closed_related_rows_do_not_block(self):
        self.add_contact(self.customer, "Ana Pérez", is_active=False)
        self.add_quotation(self.customer, "Q-001", status="APPROVED")
        self.add_quotation(self.customer, "Q-002", status="DRAFT", is_active=False)
        check = validate_deactivation_restrictions(self.db, Customer, self.customer.id, [OPEN_QUOTATIONS, ACTIVE_CONTACTS])
        self.assertTrue(check.can_deactivate)

    def test_violations_are_collected_in_order(self):
        self.add_contact(self.customer, "Ana Pérez")
        self.add_quotation(self.customer, "Q-001", status="SENT")
        check = validate_deactivation_restrictions(self.db, Customer, self.customer.id, [OPEN_QUOTATIONS, ACTIVE_CONTACTS])
        self.assertFalse(check.can_deactivate)
        self.assertEqual(check.blocked_by, ["quotations", "contacts"])
        self.assertEqual(check.violations, [OPEN_QUOTATIONS.message, ACTIVE_CONTACTS.message])

    def test_skipped_restrictions_are_ignored(self):
        self.add_contact(self.customer, "Ana Pérez")
        check = validate_deactivation_restrictions(
            self.db,
            Customer,
            self.customer.id,
            [OPEN_QUOTATIONS, ACTIVE_CONTACTS],
            soft_delete_skipped_restrictions=["contacts"],
        )
        self.assertTrue(check.can_deactivate)

    def test_already_inactive_entity_is_never_blocked(self):
        self.add_contact(self.customer, "Ana Pérez")
        self.customer.is_active = False
        self.db.commit()
        check = validate_deactivation_restrictions(self.db, Customer, self.customer.id, [ACTIVE_CONTACTS])
        self.assertTrue(check.can_deactivate)

    def test_to_one_restriction(self):
        contact = self.add_contact(self.customer, "Ana Pérez")
        check = validate_deactivation_restrictions(self.db, Contact, contact.id, [ACTIVE_CUSTOMER])
        self.assertEqual(check.violations, [ACTIVE_CUSTOMER.message])

    def test_assert_messages(self):
        self.add_contact(self.customer, "Ana Pérez")
        with self.assertRaises(HTTPException) as ctx:
            assert_can_deactivate(self.db, Customer, self.customer.id, [OPEN_QUOTATIONS, ACTIVE_CONTACTS])
        self.assertEqual(ctx.exception.status_code, 400)
        self.assertEqual(ctx.exception.detail, ACTIVE_CONTACTS.message)

        self.add_quotation(self.customer, "Q-003", status="DRAFT")
        with self.assertRaises(HTTPException) as ctx:
            assert_can_deactivate(self.db, Customer, self.customer.id, [OPEN_QUOTATIONS, ACTIVE_CONTACTS])
        self.assertEqual(
            ctx.exception.detail,
            "No se puede desactivar: El cliente tiene cotizaciones en curso. El cliente tiene contactos activos",
        )
