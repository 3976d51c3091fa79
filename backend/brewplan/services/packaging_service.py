# Overview: Packaging runs that turn a finished batch into sellable finished-goods stock.

from __future__ import annotations

import logging

from ..enums import BatchStatus, PackageFormat, coerce_enum
from ..errors import InvalidStateError, NotFoundError, ValidationError
from ..models import BrewBatch, FinishedGoodsStock, PackagingRun
from ..time_utils import today
from ..validation import parse_date, parse_int, parse_non_negative_int, parse_number
from .concurrency import lock_for_update, run_in_transaction

logger = logging.getLogger(__name__)

PACKAGEABLE_STATUSES = frozenset({BatchStatus.READY_TO_PACKAGE, BatchStatus.PACKAGED})


class PackagingService:
    def __init__(self, session, *, retry_attempts: int = 3):
        self.session = session
        self.retry_attempts = retry_attempts

    def record_packaging_run(self, batch_id: int, data: dict) -> tuple[PackagingRun, FinishedGoodsStock]:
        """
        Record one packaging run and the finished-goods row it produces.

        Does not move the batch to `packaged`; that stays an explicit batch
        transition so several runs (kegs, then cans) can be recorded first.
        """
        package_format = coerce_enum(PackageFormat, data.get("format"), field="format")
        units = parse_int(data.get("quantity_units"), field="quantity_units")
        if units <= 0:
            raise ValidationError("quantity_units must be positive")
        volume = parse_number(data.get("volume_litres"), field="volume_litres", required=False)
        if volume is not None and volume <= 0:
            raise ValidationError("volume_litres must be positive")
        packaging_date = parse_date(data.get("packaging_date"), field="packaging_date") or today()
        best_before = parse_date(data.get("best_before_date"), field="best_before_date")
        unit_price = parse_non_negative_int(data.get("unit_price_cents"), field="unit_price_cents", required=False)

        def _op():
            batch = lock_for_update(self.session.query(BrewBatch).filter_by(id=batch_id)).first()
            if batch is None:
                raise NotFoundError(f"Brew batch {batch_id} not found")
            if batch.status not in PACKAGEABLE_STATUSES:
                raise InvalidStateError(
                    f"Batch {batch.batch_number} is {batch.status.value}; "
                    f"only ready_to_package or packaged batches can be packaged"
                )

            run = PackagingRun(
                brew_batch_id=batch.id,
                packaging_date=packaging_date,
                format=package_format,
                quantity_units=units,
                volume_litres=volume,
                best_before_date=best_before,
                notes=data.get("notes"),
                performed_by=data.get("performed_by"),
            )
            self.session.add(run)
            self.session.flush()

            stock = FinishedGoodsStock(
                recipe_id=batch.recipe_id,
                brew_batch_id=batch.id,
                packaging_run_id=run.id,
                format=package_format,
                quantity_on_hand=units,
                quantity_reserved=0,
                location=data.get("location"),
                best_before_date=best_before,
                unit_price_cents=unit_price,
            )
            self.session.add(stock)
            self.session.flush()
            return run, stock

        run, stock = run_in_transaction(self.session, _op, attempts=self.retry_attempts)
        logger.info("Packaged %s x %s from batch %s", run.quantity_units, run.format.value, batch_id)
        return run, stock

    def list_finished_goods(self, *, in_stock_only: bool = False) -> list[FinishedGoodsStock]:
        query = self.session.query(FinishedGoodsStock)
        if in_stock_only:
            query = query.filter(FinishedGoodsStock.quantity_on_hand > 0)
        return query.order_by(FinishedGoodsStock.id.asc()).all()
