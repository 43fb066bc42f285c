"""Reserve, release and consume finished goods for customer orders."""

import json

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Decimal, Identifier, String, Text
from protean.utils.globals import current_domain

from stockledger.domain import ledger
from stockledger.ledger.quantities import ZERO, Quantity, as_quantity, is_finite_quantity
from stockledger.reservations.finished_goods import FinishedGoodsStock, ProductReservation

logger = structlog.get_logger(__name__)


@ledger.command(part_of="FinishedGoodsStock")
class AddFinishedGoods:
    product_id = Identifier(required=True)
    quantity = Decimal(required=True)
    location = String(max_length=100)


@ledger.command(part_of="ProductReservation")
class ReserveFinishedGoods:
    """(Re)compute an order's reservations from its product lines."""

    order_id = Identifier(required=True)
    lines = Text(required=True)  # JSON list of {"product_id", "quantity"}


@ledger.command(part_of="ProductReservation")
class ReleaseFinishedGoods:
    order_id = Identifier(required=True)


@ledger.command(part_of="ProductReservation")
class ConsumeFinishedGoods:
    order_id = Identifier(required=True)


def ordered_quantities(lines) -> dict[str, Quantity]:
    """Total ordered quantity per product; repeated products are summed."""
    if isinstance(lines, str):
        try:
            lines = json.loads(lines)
        except ValueError:
            raise ValidationError({"lines": ["Lines must be a JSON list"]}) from None
    if not isinstance(lines, list):
        raise ValidationError({"lines": ["Lines must be a list of product/quantity objects"]})

    totals: dict[str, Quantity] = {}
    for line in lines:
        product_id = line.get("product_id") if isinstance(line, dict) else None
        if not product_id:
            raise ValidationError({"lines": ["Every line needs a product"]})
        quantity = line.get("quantity") or 0
        if not is_finite_quantity(quantity):
            raise ValidationError({"lines": [f"Quantity for product {product_id} must be a finite number"]})
        quantity = as_quantity(quantity)
        if quantity < 0:
            raise ValidationError({"lines": [f"Quantity for product {product_id} cannot be negative"]})
        totals[str(product_id)] = totals.get(str(product_id), ZERO) + quantity
    return totals


@ledger.command_handler(part_of=FinishedGoodsStock)
class FinishedGoodsStockHandler:
    @handle(AddFinishedGoods)
    def add_finished_goods(self, command):
        repo = current_domain.repository_for(FinishedGoodsStock)
        stock = repo.find(command.product_id)
        if stock is None:
            stock = FinishedGoodsStock(product_id=command.product_id, location=command.location)
        stock.add(command.quantity)
        repo.add(stock)
        return {"product_id": stock.product_id, "quantity_on_hand": stock.quantity_on_hand}


@ledger.command_handler(part_of=ProductReservation)
class ReservationHandler:
    @handle(ReserveFinishedGoods)
    def reserve_finished_goods(self, command):
        ordered = ordered_quantities(command.lines)
        stock_repo = current_domain.repository_for(FinishedGoodsStock)
        repo = current_domain.repository_for(ProductReservation)

        for reservation in repo.for_order(command.order_id):
            repo._dao.delete(reservation)

        reserved = []
        for product_id, order_quantity in sorted(ordered.items()):
            available = stock_repo.on_hand(product_id) - repo.reserved_by_other_orders(product_id, command.order_id)
            quantity = min(order_quantity, available)
            if quantity > 0:
                repo.add(ProductReservation.reserve(command.order_id, product_id, quantity))
                reserved.append({"product_id": product_id, "quantity_reserved": quantity})

        logger.info("Finished goods reserved", order_id=command.order_id, reservations=len(reserved))
        return reserved

    @handle(ReleaseFinishedGoods)
    def release_finished_goods(self, command):
        repo = current_domain.repository_for(ProductReservation)
        reservations = repo.for_order(command.order_id)
        for reservation in reservations:
            repo._dao.delete(reservation)
        return len(reservations)

    @handle(ConsumeFinishedGoods)
    def consume_finished_goods(self, command):
        repo = current_domain.repository_for(ProductReservation)
        stock_repo = current_domain.repository_for(FinishedGoodsStock)

        consumed = []
        for reservation in sorted(repo.for_order(command.order_id), key=lambda row: row.product_id):
            stock = stock_repo.find(reservation.product_id)
            if stock is not None:
                stock.consume(reservation.quantity_reserved, command.order_id)
                stock_repo.add(stock)
            consumed.append(
                {"product_id": reservation.product_id, "quantity_consumed": reservation.quantity_reserved}
            )
            repo._dao.delete(reservation)

        logger.info("Finished goods consumed", order_id=command.order_id, products=len(consumed))
        return consumed
