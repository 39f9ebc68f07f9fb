"""BDD tests for the order status transition guard."""

from pytest_bdd import parsers, scenarios, then, when

from storefront.exceptions import StaleTransitionError, ValidationError

scenarios("features/order_status_transitions.feature")


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse('the order is advanced to "{status}"'))
def advance_order(order, status, error):
    try:
        order.advance(status)
    except ValidationError as exc:
        error["exc"] = exc


@when("the order is cancelled")
def cancel_order(order, error):
    try:
        order.cancel("Changed my mind")
    except ValidationError as exc:
        error["exc"] = exc


@when("the order is completed")
def complete_order(order, error):
    try:
        order.complete()
    except ValidationError as exc:
        error["exc"] = exc


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then("the transition is rejected as stale")
def rejected_as_stale(error):
    assert isinstance(error["exc"], StaleTransitionError)
    assert "status" in error["exc"].messages


@then("the transition is rejected as invalid")
def rejected_as_invalid(error):
    assert type(error["exc"]) is ValidationError
    assert "status" in error["exc"].messages
