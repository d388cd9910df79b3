from sqlalchemy import select

from tests.base import *  # noqa: F401,F403
from textile_backend.schemas.filters import FieldProcessingConfig
from textile_backend.services.predicate_sql import PredicateError, order_by_clauses, predicate_to_clause
from textile_backend.services.where_clause import compile_where


class PredicateSqlTests(DatabaseTestCase):
    def setUp(self):
        super().setUp()
        self.acme = self.add_customer("Acme Textil", customer_type="COMPANY", email="ventas@acme.pe")
        self.beta = self.add_customer("Beta Confecciones", customer_type="PERSON")
        self.gamma = self.add_customer("Gamma Hilos", customer_type="COMPANY", is_active=False)
        self.add_contact(self.acme, "Ana Pérez")
        self.add_contact(self.beta, "Luis Soto", is_active=False)
        self.q1 = self.add_quotation(self.acme, "Q-001", status="APPROVED", total="150.00", issued_at=self.day(0))
        self.q2 = self.add_quotation(self.beta, "Q-002", status="DRAFT", total="50.00", issued_at=self.day(30))
        self.add_item(self.q1, "Polo de algodón")

    def customers(self, where):
        rows = self.db.scalars(select(Customer).where(predicate_to_clause(Customer, where))).all()
        return sorted(row.name for row in rows)

    def quotations(self, where):
        rows = self.db.scalars(select(Quotation).where(predicate_to_clause(Quotation, where))).all()
        return sorted(row.code for row in rows)

    def test_empty_predicate_matches_everything(self):
        self.assertEqual(len(self.customers({})), 3)
        self.assertEqual(len(self.customers(None)), 3)

    def test_insensitive_contains(self):
        self.assertEqual(self.customers({"name": {"contains": "ACME", "mode": "insensitive"}}), ["Acme Textil"])
        self.assertEqual(self.customers({"name": {"startsWith": "beta", "mode": "insensitive"}}), ["Beta Confecciones"])
        self.assertEqual(self.customers({"name": {"endsWith": "HILOS", "mode": "insensitive"}}), ["Gamma Hilos"])

    def test_contains_escapes_wildcards(self):
        self.add_customer("Tela 100% lino")
        self.add_customer("Tela 1000 hilos")
        self.assertEqual(self.customers({"name": {"contains": "100%"}}), ["Tela 100% lino"])

    def test_scalar_equality_and_lists(self):
        self.assertEqual(self.customers({"customer_type": "PERSON"}), ["Beta Confecciones"])
        self.assertEqual(
            self.customers({"customer_type": {"in": ["PERSON", "COMPANY"]}, "is_active": True}),
            ["Acme Textil", "Beta Confecciones"],
        )
        self.assertEqual(self.customers({"customer_type": {"notIn": ["COMPANY"]}}), ["Beta Confecciones"])
        self.assertEqual(self.customers({"email": None}), ["Beta Confecciones", "Gamma Hilos"])
        self.assertEqual(self.customers({"email": {"not": None}}), ["Acme Textil"])

    def test_equals_insensitive(self):
        self.assertEqual(self.customers({"email": {"equals": "VENTAS@ACME.PE", "mode": "insensitive"}}), ["Acme Textil"])

    def test_not_operator_with_nested_condition(self):
        self.assertEqual(
            self.customers({"name": {"not": {"contains": "a", "mode": "insensitive"}}}),
            [],
        )
        self.assertEqual(self.customers({"customer_type": {"not": "COMPANY"}}), ["Beta Confecciones"])

    def test_boolean_values_are_coerced(self):
        self.assertEqual(self.customers({"is_active": "si"}), ["Acme Textil", "Beta Confecciones"])
        self.assertEqual(self.customers({"is_active": {"equals": "false"}}), ["Gamma Hilos"])

    def test_logical_groups(self):
        where = {
            "OR": [{"name": {"contains": "acme", "mode": "insensitive"}}, {"customer_type": "PERSON"}],
            "NOT": [{"customer_type": "PERSON"}],
        }
        self.assertEqual(self.customers(where), ["Acme Textil"])
        self.assertEqual(self.customers({"AND": [{"is_active": True}, {"customer_type": "COMPANY"}]}), ["Acme Textil"])
        self.assertEqual(self.customers({"OR": []}), [])

    def test_to_many_quantifiers(self):
        self.assertEqual(self.customers({"quotations": {"some": {"status": "APPROVED"}}}), ["Acme Textil"])
        self.assertEqual(self.customers({"quotations": {"none": {}}}), ["Gamma Hilos"])
        self.assertEqual(
            self.customers({"quotations": {"every": {"status": "APPROVED"}}}),
            ["Acme Textil", "Gamma Hilos"],
        )
        self.assertEqual(self.customers({"contacts": {"some": {"is_active": True}}}), ["Acme Textil"])
        self.assertEqual(self.customers({"contacts": {"name": {"contains": "soto", "mode": "insensitive"}}}), ["Beta Confecciones"])

    def test_nested_relations(self):
        where = {"quotations": {"some": {"items": {"some": {"description": {"contains": "algodón"}}}}}}
        self.assertEqual(self.customers(where), ["Acme Textil"])

    def test_to_one_relation(self):
        self.assertEqual(self.quotations({"customer": {"is": {"customer_type": "PERSON"}}}), ["Q-002"])
        self.assertEqual(self.quotations({"customer": {"isNot": {"customer_type": "PERSON"}}}), ["Q-001"])
        self.assertEqual(self.quotations({"customer": {"some": {"name": {"contains": "acme", "mode": "insensitive"}}}}), ["Q-001"])
        self.assertEqual(self.quotations({"customer": {"email": {"contains": "acme"}}}), ["Q-001"])

    def test_numeric_values_are_coerced(self):
        self.assertEqual(self.quotations({"total": {"gte": "100"}}), ["Q-001"])
        self.assertEqual(self.quotations({"total": {"lt": "100,5"}}), ["Q-002"])
        self.assertEqual(self.customers({"quotations": {"some": {"total": {"gt": 40, "lte": 60}}}}), ["Beta Confecciones"])

    def test_compiled_date_range_filters_rows(self):
        config = FieldProcessingConfig(date_fields=["issued_at"])
        where = compile_where({"searchByField": {"issued_at": "2024-01-01 - 2024-01-10"}}, config)
        self.assertEqual(self.quotations(where), ["Q-001"])
        where = compile_where({"fieldDate": {"field": "issued_at", "value": "2024-02-01", "operator": "gte"}}, config)
        self.assertEqual(self.quotations(where), ["Q-002"])

    def test_uuid_values(self):
        self.assertEqual(self.customers({"id": {"in": [str(self.acme.id)]}}), ["Acme Textil"])
        self.assertEqual(self.quotations({"customer_id": str(self.beta.id)}), ["Q-002"])

    def test_unknown_field_is_rejected(self):
        with self.assertRaises(PredicateError) as ctx:
            predicate_to_clause(Customer, {"phone": "123"})
        self.assertEqual(ctx.exception.field, "phone")

    def test_unknown_operator_is_rejected(self):
        with self.assertRaises(PredicateError) as ctx:
            predicate_to_clause(Customer, {"name": {"regex": "^A"}})
        self.assertEqual(ctx.exception.field, "name")

    def test_invalid_values_are_rejected(self):
        with self.assertRaises(PredicateError) as ctx:
            predicate_to_clause(Quotation, {"total": {"gte": "mucho"}})
        self.assertEqual(ctx.exception.field, "total")

        with self.assertRaises(PredicateError):
            predicate_to_clause(Customer, {"id": {"in": ["no-es-uuid"]}})

        with self.assertRaises(PredicateError):
            predicate_to_clause(Customer, {"is_active": "tal vez"})

        where = compile_where({"searchByField": {"issued_at": "ayer - 2024-01-10"}}, FieldProcessingConfig(date_fields=["issued_at"]))
        with self.assertRaises(PredicateError) as ctx:
            predicate_to_clause(Quotation, where)
        self.assertEqual(ctx.exception.field, "issued_at")

    def test_relation_condition_must_be_a_mapping(self):
        with self.assertRaises(PredicateError):
            predicate_to_clause(Customer, {"quotations": "Q-001"})

    def test_order_by_clauses(self):
        rows = self.db.scalars(
            select(Customer).order_by(*order_by_clauses(Customer, {"name": "desc"}))
        ).all()
        self.assertEqual([row.name for row in rows], ["Gamma Hilos", "Beta Confecciones", "Acme Textil"])
        self.assertEqual(order_by_clauses(Customer, None), [])
        with self.assertRaises(PredicateError):
            order_by_clauses(Customer, {"contacts": "asc"})
