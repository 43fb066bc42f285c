"""Finished goods on hand and the customer-order reservations held against them.

Finished goods are tracked per product, separately from component
balances, and do not write to the component ledger. A reservation earmarks
stock for one customer order; what other orders have reserved is never
available to the next one.
"""

from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import DateTime, Decimal, Identifier, String

from stockledger.domain import ledger
from stockledger.ledger.quantities import ZERO, as_quantity, require_finite
from stockledger.reservations.events import FinishedGoodsAdded, FinishedGoodsConsumed, FinishedGoodsReserved
from stockledger.utils.query import fetch_all, fetch_one


@ledger.aggregate
class FinishedGoodsStock:
    product_id = Identifier(identifier=True)
    quantity_on_hand = Decimal(default=ZERO)
    location = String(max_length=100)
    updated_at = DateTime()

    def add(self, quantity):
        quantity = require_finite(quantity, "quantity", default=None)
        if quantity <= 0:
            raise ValidationError({"quantity": ["Quantity must be positive"]})

        self.quantity_on_hand = as_quantity(self.quantity_on_hand) + quantity
        self.updated_at = datetime.now(UTC)
        self.raise_(
            FinishedGoodsAdded(
                product_id=self.product_id,
                quantity=quantity,
                quantity_on_hand=self.quantity_on_hand,
                added_at=self.updated_at,
            )
        )

    def consume(self, quantity, order_id):
        """Ship ``quantity`` for an order. On-hand never drops below zero."""
        quantity = as_quantity(quantity)
        self.quantity_on_hand = max(as_quantity(self.quantity_on_hand) - quantity, ZERO)
        self.updated_at = datetime.now(UTC)
        self.raise_(
            FinishedGoodsConsumed(
                product_id=self.product_id,
                order_id=str(order_id),
                quantity=quantity,
                quantity_on_hand=self.quantity_on_hand,
                consumed_at=self.updated_at,
            )
        )


@ledger.repository(part_of=FinishedGoodsStock)
class FinishedGoodsStockRepository:
    def find(self, product_id) -> FinishedGoodsStock | None:
        return fetch_one(self, str(product_id))

    def on_hand(self, product_id):
        stock = self.find(product_id)
        return as_quantity(stock.quantity_on_hand) if stock else ZERO


@ledger.aggregate
class ProductReservation:
    order_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity_reserved = Decimal(required=True)
    reserved_at = DateTime()

    @classmethod
    def reserve(cls, order_id, product_id, quantity):
        now = datetime.now(UTC)
        reservation = cls(
            order_id=str(order_id),
            product_id=str(product_id),
            quantity_reserved=quantity,
            reserved_at=now,
        )
        reservation.raise_(
            FinishedGoodsReserved(
                reservation_id=str(reservation.id),
                product_id=reservation.product_id,
                order_id=reservation.order_id,
                quantity_reserved=quantity,
                reserved_at=now,
            )
        )
        return reservation


@ledger.repository(part_of=ProductReservation)
class ProductReservationRepository:
    def for_order(self, order_id) -> list:
        return fetch_all(self, order_id=str(order_id))

    def reserved_by_other_orders(self, product_id, order_id):
        return sum(
            (
                row.quantity_reserved
                for row in fetch_all(self, product_id=str(product_id))
                if row.order_id != str(order_id)
            ),
            ZERO,
        )
