# Overview: Pytest coverage for transition tables, enum coercion, numbering, money and transaction retries.

from unittest import mock

import pytest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError

from brewplan.enums import (
    BATCH_TRANSITIONS,
    ORDER_TRANSITIONS,
    PO_TRANSITIONS,
    BatchStatus,
    OrderStatus,
    PurchaseOrderStatus,
    coerce_enum,
    is_terminal,
)
from brewplan.errors import ConcurrencyConflictError, ValidationError
from brewplan.models import BrewBatch
from brewplan.services import money
from brewplan.services.concurrency import run_in_transaction
from brewplan.services.numbering import BATCH_PREFIX, next_document_number


class TestTransitionTables:
    @pytest.mark.parametrize("table,enum_cls", [
        (BATCH_TRANSITIONS, BatchStatus),
        (PO_TRANSITIONS, PurchaseOrderStatus),
        (ORDER_TRANSITIONS, OrderStatus),
    ])
    def test_tables_cover_every_status(self, table, enum_cls):
        assert set(table) == set(enum_cls)
        for targets in table.values():
            assert targets <= set(enum_cls)

    def test_terminal_states(self):
        assert {s for s in BatchStatus if is_terminal(BATCH_TRANSITIONS, s)} == {
            BatchStatus.COMPLETED, BatchStatus.CANCELLED, BatchStatus.DUMPED,
        }
        assert {s for s in PurchaseOrderStatus if is_terminal(PO_TRANSITIONS, s)} == {
            PurchaseOrderStatus.RECEIVED, PurchaseOrderStatus.CANCELLED,
        }
        assert {s for s in OrderStatus if is_terminal(ORDER_TRANSITIONS, s)} == {
            OrderStatus.PAID, OrderStatus.CANCELLED,
        }

    def test_coerce_enum(self):
        assert coerce_enum(BatchStatus, "brewing", field="status") is BatchStatus.BREWING
        assert coerce_enum(BatchStatus, BatchStatus.DUMPED, field="status") is BatchStatus.DUMPED
        with pytest.raises(ValidationError) as exc:
            coerce_enum(BatchStatus, "BREWING", field="status")
        assert "planned" in str(exc.value)


class TestMoney:
    def test_line_totals_round_half_up(self):
        assert money.line_total_cents(3, 250) == 750
        assert money.line_total_cents(0.125, 100) == 13
        assert money.line_total_cents(1.005, 1000) == 1005

    def test_document_totals(self):
        assert money.document_totals([1000, 2345], 1000) == (3345, 335, 3680)
        assert money.document_totals([], 1000) == (0, 0, 0)


class TestNumbering:
    def test_numbers_are_year_scoped(self, db_session, recipe):
        assert next_document_number(db_session, BrewBatch.batch_number, BATCH_PREFIX, year=2031) == "BP-2031-001"
        db_session.add(BrewBatch(batch_number="BP-2031-001", recipe_id=recipe.id, batch_size_litres=10))
        db_session.add(BrewBatch(batch_number="BP-2030-007", recipe_id=recipe.id, batch_size_litres=10))
        db_session.commit()

        assert next_document_number(db_session, BrewBatch.batch_number, BATCH_PREFIX, year=2031) == "BP-2031-002"


class TestRunInTransaction:
    def test_commits_result(self, db_session):
        with mock.patch.object(db_session, "commit") as commit:
            assert run_in_transaction(db_session, lambda: 42) == 42
        commit.assert_called_once()

    def test_stale_data_is_retried(self, db_session):
        calls = []

        def op():
            calls.append(1)
            if len(calls) == 1:
                raise StaleDataError("row changed")
            return "ok"

        assert run_in_transaction(db_session, op, attempts=3, backoff_base=0) == "ok"
        assert len(calls) == 2

    def test_retries_exhausted(self, db_session):
        def op():
            raise StaleDataError("row changed")

        with pytest.raises(ConcurrencyConflictError):
            run_in_transaction(db_session, op, attempts=2, backoff_base=0)

    def test_domain_errors_roll_back_and_propagate(self, db_session, recipe):
        def op():
            db_session.add(BrewBatch(batch_number="BP-2031-001", recipe_id=recipe.id, batch_size_litres=10))
            db_session.flush()
            raise ValidationError("nope")

        with pytest.raises(ValidationError):
            run_in_transaction(db_session, op)
        assert db_session.query(BrewBatch).count() == 0

    def test_integrity_error_propagates_by_default(self, db_session):
        def op():
            raise IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed"))

        with pytest.raises(IntegrityError):
            run_in_transaction(db_session, op, attempts=3, backoff_base=0)

    def test_duplicate_document_number_is_retried(self, db_session, recipe):
        year_prefix = f"{BATCH_PREFIX}-2031-"
        calls = []

        def op():
            calls.append(1)
            number = next_document_number(db_session, BrewBatch.batch_number, BATCH_PREFIX, year=2031)
            if len(calls) == 1:
                # Another request commits the same number first
                db_session.add(BrewBatch(batch_number=number, recipe_id=recipe.id, batch_size_litres=10))
                db_session.commit()
            db_session.add(BrewBatch(batch_number=number, recipe_id=recipe.id, batch_size_litres=10))
            db_session.flush()
            return number

        number = run_in_transaction(db_session, op, attempts=3, backoff_base=0, retry_integrity_errors=True)

        assert len(calls) == 2
        assert number == f"{year_prefix}002"
        assert db_session.query(BrewBatch).count() == 2
