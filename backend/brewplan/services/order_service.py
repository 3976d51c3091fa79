# Overview: Sales order state machine with finished-goods reservation and depletion.

"""
Sales Order Lifecycle

LIFECYCLE (enums.ORDER_TRANSITIONS):
    draft -> confirmed -> picking -> dispatched -> delivered -> invoiced -> paid
    confirmed -> dispatched            (ship straight from confirmed)
    dispatched -> invoiced             (invoice before delivery)
    draft | confirmed -> cancelled
paid and cancelled are terminal.

GUARDS (all evaluated before any write):
- draft -> confirmed: >= 1 line, every line has recipe and format, delivery date set.
- confirmed -> picking / dispatched: every line linked to finished goods and
  the stock row's (on_hand - reserved) covers the order's demand on it.

STOCK SIDE EFFECTS:
- -> picking: reserved += qty
- -> dispatched: on_hand -= qty; the line's own reservation is handed back
- -> cancelled: each line releases only what it reserved itself
OrderLine.quantity_reserved records what a line holds on its stock row, so
cancelling one order never releases stock reserved by another.
INVARIANT: 0 <= reserved <= on_hand on every FinishedGoodsStock row.
"""

from __future__ import annotations

import logging

from ..enums import (
    FORMAT_LABELS,
    ORDER_TRANSITIONS,
    CustomerType,
    OrderChannel,
    OrderStatus,
    PackageFormat,
    coerce_enum,
)
from ..errors import (
    GuardViolationError,
    InsufficientStockError,
    InvalidStateError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from ..models import Customer, FinishedGoodsStock, Order, OrderLine, Recipe
from ..time_utils import today, utcnow
from ..validation import parse_date, parse_int, parse_non_negative_int
from .concurrency import lock_for_update, run_in_transaction
from .money import DEFAULT_TAX_RATE_BPS, document_totals
from .numbering import INVOICE_PREFIX, ORDER_PREFIX, next_document_number

logger = logging.getLogger(__name__)

LINE_EDITABLE_STATUSES = frozenset({OrderStatus.DRAFT, OrderStatus.CONFIRMED})


def _positive_int(value, *, field: str) -> int:
    number = parse_int(value, field=field)
    if number <= 0:
        raise ValidationError(f"{field} must be positive")
    return number


def describe_line(recipe: Recipe | None, package_format: PackageFormat | None) -> str:
    name = recipe.name if recipe is not None else "Unknown"
    label = FORMAT_LABELS.get(package_format, "Unspecified format") if package_format else "Unspecified format"
    return f"{name} — {label}"


class OrderLifecycle:
    def __init__(self, session, *, tax_rate_bps: int = DEFAULT_TAX_RATE_BPS, retry_attempts: int = 3):
        self.session = session
        self.tax_rate_bps = tax_rate_bps
        self.retry_attempts = retry_attempts

    # ------------------------------------------------------------------
    # Reads / locks
    # ------------------------------------------------------------------

    def get(self, order_id: int) -> Order:
        order = self.session.get(Order, order_id)
        if order is None:
            raise NotFoundError(f"Order {order_id} not found")
        return order

    def list_orders(self, status=None, customer_id: int | None = None) -> list[Order]:
        query = self.session.query(Order)
        if status is not None:
            query = query.filter(Order.status == coerce_enum(OrderStatus, status, field="status"))
        if customer_id is not None:
            query = query.filter(Order.customer_id == customer_id)
        return query.order_by(Order.order_date.desc(), Order.id.desc()).all()

    def _locked_order(self, order_id: int) -> Order:
        order = lock_for_update(self.session.query(Order).filter_by(id=order_id)).first()
        if order is None:
            raise NotFoundError(f"Order {order_id} not found")
        return order

    def _locked_line(self, line_id: int) -> OrderLine:
        line = lock_for_update(self.session.query(OrderLine).filter_by(id=line_id)).first()
        if line is None:
            raise NotFoundError(f"Order line {line_id} not found")
        return line

    def _locked_stock(self, stock_id: int) -> FinishedGoodsStock | None:
        return lock_for_update(self.session.query(FinishedGoodsStock).filter_by(id=stock_id)).first()

    def _require_lines_editable(self, order: Order) -> None:
        if order.status not in LINE_EDITABLE_STATUSES:
            raise InvalidStateError(
                f"Cannot modify lines of {order.order_number}: order is {order.status.value}"
            )

    def _recalculate_totals(self, order: Order) -> None:
        self.session.flush()
        lines = self.session.query(OrderLine).filter_by(order_id=order.id).all()
        order.subtotal_cents, order.tax_cents, order.total_cents = document_totals(
            [l.line_total_cents for l in lines], self.tax_rate_bps
        )
        order.updated_at = utcnow()

    # ------------------------------------------------------------------
    # Customers / create
    # ------------------------------------------------------------------

    def create_customer(self, data: dict) -> Customer:
        name = (data.get("name") or "").strip()
        if not name:
            raise ValidationError("name is required")
        customer_type = coerce_enum(
            CustomerType, data.get("customer_type", CustomerType.VENUE), field="customer_type"
        )

        def _op():
            customer = Customer(
                name=name,
                customer_type=customer_type,
                contact_name=data.get("contact_name"),
                email=data.get("email"),
                phone=data.get("phone"),
                address=data.get("address"),
                delivery_notes=data.get("delivery_notes"),
                notes=data.get("notes"),
            )
            self.session.add(customer)
            self.session.flush()
            return customer

        return run_in_transaction(self.session, _op, attempts=self.retry_attempts)

    def create(self, data: dict) -> Order:
        if data.get("customer_id") is None:
            raise ValidationError("customer_id is required")
        order_date = parse_date(data.get("order_date"), field="order_date") or today()
        delivery_date = parse_date(data.get("delivery_date"), field="delivery_date")
        channel = coerce_enum(OrderChannel, data.get("channel", OrderChannel.WHOLESALE), field="channel")

        def _op():
            customer = self.session.get(Customer, data["customer_id"])
            if customer is None:
                raise NotFoundError(f"Customer {data['customer_id']} not found")
            order = Order(
                order_number=next_document_number(self.session, Order.order_number, ORDER_PREFIX),
                customer_id=customer.id,
                status=OrderStatus.DRAFT,
                order_date=order_date,
                delivery_date=delivery_date,
                channel=channel,
                notes=data.get("notes"),
            )
            self.session.add(order)
            self.session.flush()
            return order

        order = run_in_transaction(
            self.session, _op, attempts=self.retry_attempts, retry_integrity_errors=True
        )
        logger.info("Created order %s for customer %s", order.order_number, order.customer_id)
        return order

    def set_delivery_date(self, order_id: int, delivery_date) -> Order:
        parsed = parse_date(delivery_date, field="delivery_date")

        def _op():
            order = self._locked_order(order_id)
            self._require_lines_editable(order)
            order.delivery_date = parsed
            order.updated_at = utcnow()
            return order

        return run_in_transaction(self.session, _op, attempts=self.retry_attempts)

    # ------------------------------------------------------------------
    # Lines
    # ------------------------------------------------------------------

    def add_line(self, order_id: int, data: dict) -> OrderLine:
        quantity = _positive_int(data.get("quantity"), field="quantity")
        package_format = (
            coerce_enum(PackageFormat, data["format"], field="format") if data.get("format") else None
        )

        def _op():
            order = self._locked_order(order_id)
            self._require_lines_editable(order)

            recipe = None
            if data.get("recipe_id") is not None:
                recipe = self.session.get(Recipe, data["recipe_id"])
                if recipe is None:
                    raise NotFoundError(f"Recipe {data['recipe_id']} not found")
            if order.status == OrderStatus.CONFIRMED and (recipe is None or package_format is None):
                raise GuardViolationError(
                    f"Lines added to confirmed order {order.order_number} need a recipe and format"
                )

            stock = None
            if data.get("finished_goods_id") is not None:
                stock = self.session.get(FinishedGoodsStock, data["finished_goods_id"])
                if stock is None:
                    raise NotFoundError(f"Finished goods {data['finished_goods_id']} not found")

            unit_price = data.get("unit_price_cents")
            if unit_price is None and stock is not None and stock.unit_price_cents is not None:
                unit_price = stock.unit_price_cents
            unit_price = parse_non_negative_int(unit_price or 0, field="unit_price_cents")

            line = OrderLine(
                recipe_id=recipe.id if recipe is not None else None,
                format=package_format,
                finished_goods_id=stock.id if stock is not None else None,
                description=(data.get("description") or "").strip() or describe_line(recipe, package_format),
                quantity=quantity,
                unit_price_cents=unit_price,
                line_total_cents=quantity * unit_price,
                notes=data.get("notes"),
            )
            order.lines.append(line)
            self._recalculate_totals(order)
            return line

        return run_in_transaction(self.session, _op, attempts=self.retry_attempts)

    def update_line(self, line_id: int, data: dict) -> OrderLine:
        def _op():
            line = self._locked_line(line_id)
            order = self._locked_order(line.order_id)
            self._require_lines_editable(order)

            if data.get("quantity") is not None:
                line.quantity = _positive_int(data["quantity"], field="quantity")
            if data.get("unit_price_cents") is not None:
                line.unit_price_cents = parse_non_negative_int(data["unit_price_cents"], field="unit_price_cents")
            if "notes" in data:
                line.notes = data["notes"]
            if "finished_goods_id" in data:
                stock_id = data["finished_goods_id"]
                if stock_id is not None and self.session.get(FinishedGoodsStock, stock_id) is None:
                    raise NotFoundError(f"Finished goods {stock_id} not found")
                line.finished_goods_id = stock_id

            line.line_total_cents = line.quantity * line.unit_price_cents
            self._recalculate_totals(order)
            return line

        return run_in_transaction(self.session, _op, attempts=self.retry_attempts)

    def remove_line(self, line_id: int) -> Order:
        def _op():
            line = self._locked_line(line_id)
            order = self._locked_order(line.order_id)
            self._require_lines_editable(order)
            order.lines.remove(line)
            self._recalculate_totals(order)
            return order

        return run_in_transaction(self.session, _op, attempts=self.retry_attempts)

    # ------------------------------------------------------------------
    # Transition
    # ------------------------------------------------------------------

    def _check_confirmable(self, order: Order, lines: list[OrderLine]) -> None:
        if not lines:
            raise GuardViolationError(f"Order {order.order_number} needs at least one line before confirming")
        for line in lines:
            if line.recipe_id is None or line.format is None:
                raise GuardViolationError(
                    f'Order line "{line.description}" must have a recipe and format before confirming'
                )
        if order.delivery_date is None:
            raise GuardViolationError(f"Order {order.order_number} needs a delivery date before confirming")

    def _check_stock(self, order: Order, lines: list[OrderLine]) -> dict[int, FinishedGoodsStock]:
        """
        Every line must be linked to finished goods, and each stock row must
        cover the summed demand of all lines pointing at it. Returns the
        locked stock rows by id.
        """
        stocks: dict[int, FinishedGoodsStock] = {}
        demand: dict[int, int] = {}
        for line in lines:
            if line.finished_goods_id is None:
                raise GuardViolationError(
                    f'Order line "{line.description}" must be linked to finished goods',
                    details={"order_line_id": line.id},
                )
            stock = stocks.get(line.finished_goods_id) or self._locked_stock(line.finished_goods_id)
            if stock is None:
                raise NotFoundError(f'Finished goods not found for line "{line.description}"')
            stocks[stock.id] = stock
            demand[stock.id] = demand.get(stock.id, 0) + line.quantity

            available = stock.quantity_on_hand - stock.quantity_reserved
            if available < demand[stock.id]:
                raise InsufficientStockError(
                    f'Insufficient stock for "{line.description}": need {line.quantity}, '
                    f"available {available - (demand[stock.id] - line.quantity)}",
                    details={"order_line_id": line.id, "finished_goods_id": stock.id, "available": available},
                )
        return stocks

    def transition(self, order_id: int, to_status) -> Order:
        to_status = coerce_enum(OrderStatus, to_status, field="status")

        def _op():
            order = self._locked_order(order_id)
            from_status = order.status
            if to_status not in ORDER_TRANSITIONS[from_status]:
                raise InvalidTransitionError("order", from_status.value, to_status.value)

            lines = list(order.lines)
            now = utcnow()

            # Guards
            stocks: dict[int, FinishedGoodsStock] = {}
            if from_status == OrderStatus.DRAFT and to_status == OrderStatus.CONFIRMED:
                self._check_confirmable(order, lines)
            if from_status == OrderStatus.CONFIRMED and to_status in (OrderStatus.PICKING, OrderStatus.DISPATCHED):
                stocks = self._check_stock(order, lines)

            # Side effects
            if to_status == OrderStatus.PICKING:
                for line in lines:
                    stock = stocks[line.finished_goods_id]
                    stock.quantity_reserved += line.quantity
                    stock.updated_at = now
                    line.quantity_reserved = line.quantity

            if to_status == OrderStatus.DISPATCHED:
                for line in lines:
                    if line.finished_goods_id is None:
                        continue
                    stock = stocks.get(line.finished_goods_id) or self._locked_stock(line.finished_goods_id)
                    if stock is None:
                        raise NotFoundError(f'Finished goods not found for line "{line.description}"')
                    stocks[stock.id] = stock
                    stock.quantity_reserved -= line.quantity_reserved or 0
                    line.quantity_reserved = 0
                    stock.quantity_on_hand -= line.quantity
                    stock.updated_at = now
                for stock in stocks.values():
                    if stock.quantity_on_hand < 0 or stock.quantity_reserved < 0 \
                            or stock.quantity_reserved > stock.quantity_on_hand:
                        raise GuardViolationError(
                            f"Finished goods {stock.id} cannot cover dispatch of {order.order_number}",
                            details={"finished_goods_id": stock.id},
                        )

            if to_status == OrderStatus.INVOICED:
                order.invoice_number = next_document_number(self.session, Order.invoice_number, INVOICE_PREFIX)

            if to_status == OrderStatus.PAID:
                order.paid_at = now

            if to_status == OrderStatus.CANCELLED:
                for line in lines:
                    held = line.quantity_reserved or 0
                    if line.finished_goods_id is None or held <= 0:
                        continue
                    stock = self._locked_stock(line.finished_goods_id)
                    if stock is not None:
                        stock.quantity_reserved -= min(stock.quantity_reserved, held)
                        stock.updated_at = now
                    line.quantity_reserved = 0

            order.status = to_status
            order.updated_at = now
            return order, from_status

        order, from_status = run_in_transaction(
            self.session, _op, attempts=self.retry_attempts, retry_integrity_errors=True
        )
        logger.info("Order %s: %s -> %s", order.order_number, from_status.value, to_status.value)
        return order
