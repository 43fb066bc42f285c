"""Application tests for finished goods stock and order reservations."""

import pytest
from protean import current_domain
from protean.exceptions import ValidationError
from stockledger.operations import run
from stockledger.reservations.allocation import (
    AddFinishedGoods,
    ConsumeFinishedGoods,
    ReleaseFinishedGoods,
    ReserveFinishedGoods,
)
from stockledger.reservations.finished_goods import FinishedGoodsStock, ProductReservation


@pytest.fixture()
def stocked():
    run(AddFinishedGoods(product_id="prod-1", quantity=10))
    run(AddFinishedGoods(product_id="prod-2", quantity=3))


def _reserve(order_id, lines):
    return run(ReserveFinishedGoods(order_id=order_id, lines=lines))


def _reserved(order_id):
    rows = current_domain.repository_for(ProductReservation).for_order(order_id)
    return {row.product_id: row.quantity_reserved for row in rows}


class TestAddFinishedGoods:
    def test_accumulates(self):
        run(AddFinishedGoods(product_id="prod-9", quantity=4, location="Bay 1"))
        result = run(AddFinishedGoods(product_id="prod-9", quantity=6))
        assert result == {"product_id": "prod-9", "quantity_on_hand": 10}

    def test_rejects_non_positive(self):
        with pytest.raises(ValidationError):
            run(AddFinishedGoods(product_id="prod-9", quantity=0))


@pytest.mark.usefixtures("stocked")
class TestReserveFinishedGoods:
    def test_reserves_up_to_available(self, lines_json):
        result = _reserve("order-1", lines_json(("prod-1", 4), ("prod-2", 5), key="product_id"))
        assert result == [
            {"product_id": "prod-1", "quantity_reserved": 4},
            {"product_id": "prod-2", "quantity_reserved": 3},
        ]

    def test_other_orders_reduce_availability(self, lines_json):
        _reserve("order-1", lines_json(("prod-1", 7), key="product_id"))
        result = _reserve("order-2", lines_json(("prod-1", 7), ("prod-2", 0), key="product_id"))
        assert result == [{"product_id": "prod-1", "quantity_reserved": 3}]

    def test_recomputing_replaces_previous_reservations(self, lines_json):
        _reserve("order-1", lines_json(("prod-1", 7), key="product_id"))
        _reserve("order-1", lines_json(("prod-1", 2), ("prod-2", 1), key="product_id"))
        assert _reserved("order-1") == {"prod-1": 2, "prod-2": 1}

    def test_repeated_products_are_summed(self, lines_json):
        _reserve("order-1", lines_json(("prod-1", 2), ("prod-1", 3), key="product_id"))
        assert _reserved("order-1") == {"prod-1": 5}

    def test_unknown_product_reserves_nothing(self, lines_json):
        assert _reserve("order-1", lines_json(("prod-unknown", 2), key="product_id")) == []

    def test_malformed_lines(self):
        with pytest.raises(ValidationError):
            _reserve("order-1", "not json")


@pytest.mark.usefixtures("stocked")
class TestReleaseAndConsume:
    def test_release_frees_stock_for_other_orders(self, lines_json):
        _reserve("order-1", lines_json(("prod-1", 10), ("prod-2", 1), key="product_id"))

        assert run(ReleaseFinishedGoods(order_id="order-1")) == 2
        assert _reserved("order-1") == {}
        assert _reserve("order-2", lines_json(("prod-1", 10), key="product_id"))[0]["quantity_reserved"] == 10

    def test_release_without_reservations(self):
        assert run(ReleaseFinishedGoods(order_id="order-none")) == 0

    def test_consume_reduces_stock_and_clears_reservations(self, lines_json):
        _reserve("order-1", lines_json(("prod-1", 4), ("prod-2", 3), key="product_id"))

        result = run(ConsumeFinishedGoods(order_id="order-1"))

        assert result == [
            {"product_id": "prod-1", "quantity_consumed": 4},
            {"product_id": "prod-2", "quantity_consumed": 3},
        ]
        stock = current_domain.repository_for(FinishedGoodsStock)
        assert stock.on_hand("prod-1") == 6
        assert stock.on_hand("prod-2") == 0
        assert _reserved("order-1") == {}
