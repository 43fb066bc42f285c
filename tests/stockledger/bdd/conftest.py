"""Shared BDD fixtures and step definitions for the stock ledger."""

import pytest
from protean import current_domain
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, then
from stockledger.balance.balance import InventoryBalance
from stockledger.balance.management import CreateInventoryRecord
from stockledger.operations import run


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def error():
    """Container for captured validation errors."""
    return {"exc": None}


@pytest.fixture()
def outcome():
    """The last command's result."""
    return {}


@pytest.fixture()
def attempt(error, outcome):
    """Run a command, keeping its result or the validation error it raised."""

    def _attempt(command):
        try:
            outcome["result"] = run(command)
        except ValidationError as exc:
            error["exc"] = exc

    return _attempt


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('an inventory record for "{component_id}" with {quantity:d} on hand'))
def inventory_record(component_id, quantity):
    run(CreateInventoryRecord(component_id=component_id, initial_quantity=quantity))


# ---------------------------------------------------------------------------
# Then steps (shared)
# ---------------------------------------------------------------------------
@then("the action fails with a validation error")
def action_fails_with_validation_error(error):
    assert error["exc"] is not None, "Expected a validation error but none was raised"
    assert isinstance(error["exc"], ValidationError)


@then(parsers.cfparse('"{component_id}" has {quantity:d} on hand'))
def on_hand_is(component_id, quantity):
    balance = current_domain.repository_for(InventoryBalance).get(component_id)
    assert balance.quantity_on_hand == quantity
