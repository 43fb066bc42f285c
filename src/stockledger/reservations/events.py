"""Domain events for finished goods stock and reservations."""

from protean.fields import DateTime, Decimal, Identifier

from stockledger.domain import ledger
from stockledger.ledger.quantities import ZERO


@ledger.event(part_of="FinishedGoodsStock")
class FinishedGoodsAdded:
    __version__ = 1

    product_id = Identifier(required=True)
    quantity = Decimal(required=True)
    quantity_on_hand = Decimal(default=ZERO)
    added_at = DateTime(required=True)


@ledger.event(part_of="FinishedGoodsStock")
class FinishedGoodsConsumed:
    __version__ = 1

    product_id = Identifier(required=True)
    order_id = Identifier(required=True)
    quantity = Decimal(required=True)
    quantity_on_hand = Decimal(default=ZERO)
    consumed_at = DateTime(required=True)


@ledger.event(part_of="ProductReservation")
class FinishedGoodsReserved:
    __version__ = 1

    reservation_id = Identifier(required=True)
    product_id = Identifier(required=True)
    order_id = Identifier(required=True)
    quantity_reserved = Decimal(required=True)
    reserved_at = DateTime(required=True)
