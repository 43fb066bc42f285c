"""BDD tests for picking list creation, completion and cancellation."""

import json

from protean import current_domain
from pytest_bdd import given, parsers, scenarios, then, when
from stockledger.issuance.picking import CancelPickingList, CompletePickingList, CreatePickingList
from stockledger.issuance.picking_list import PendingStockIssuance
from stockledger.operations import run

scenarios("features/picking_lists.feature")


def _lines(*pairs):
    return json.dumps([{"component_id": component_id, "quantity": quantity} for quantity, component_id in pairs])


_TWO_LINES = '{first:d} of "{first_component}" and {second:d} of "{second_component}"'


@given(parsers.cfparse("a picking list for " + _TWO_LINES), target_fixture="pending_id")
def picking_list(first, first_component, second, second_component):
    lines = _lines((first, first_component), (second, second_component))
    return run(CreatePickingList(lines=lines, external_reference="WO-BDD"))


@given("the picking list has been completed")
def completed(pending_id):
    run(CompletePickingList(pending_issuance_id=pending_id))


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse("a picking list is created for " + _TWO_LINES))
def create_picking_list(first, first_component, second, second_component, attempt):
    lines = _lines((first, first_component), (second, second_component))
    attempt(CreatePickingList(lines=lines, external_reference="WO-BDD"))


@when("the picking list is completed")
def complete(pending_id, attempt):
    attempt(CompletePickingList(pending_issuance_id=pending_id))


@when("the picking list is cancelled")
def cancel(pending_id, attempt):
    attempt(CancelPickingList(pending_issuance_id=pending_id))


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the action fails with a validation error naming "{component_id}"'))
def fails_naming(error, component_id):
    assert error["exc"] is not None
    assert any(component_id in message for message in error["exc"].messages["component_id"])


@then("no picking list is pending")
def none_pending():
    assert current_domain.repository_for(PendingStockIssuance).with_status("pending") == []


@then(parsers.cfparse('the picking list status is "{status}"'))
def picking_list_status(pending_id, status):
    assert current_domain.repository_for(PendingStockIssuance).get(pending_id).status == status


@then(parsers.cfparse('the completion reports a negative balance for "{component_id}"'))
def negative_reported(outcome, component_id):
    assert component_id in outcome["result"]["negative_components"]
