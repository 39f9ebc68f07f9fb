"""BDD tests for cart line merging and the multi-vendor notice."""

from pytest_bdd import scenarios, then

scenarios("features/cart_lines.feature")


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then("the multi-vendor notice is shown")
def notice_is_shown(cart):
    assert cart.multi_vendor_notice is True


@then("the multi-vendor notice is hidden")
def notice_is_hidden(cart):
    assert cart.multi_vendor_notice is False
