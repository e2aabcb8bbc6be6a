"""Shared BDD fixtures and step definitions for the Ordering domain."""

import json

import pytest
from ordering.checkout.saga import advance
from ordering.order.order import Order
from ordering.order.payment import ApplyPaymentResult
from protean import current_domain
from pytest_bdd import given, parsers, then, when


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def error():
    """Container for captured errors."""
    return {"exc": None}


def report_payment(order_id, status):
    result = current_domain.process(
        ApplyPaymentResult(
            order_id=str(order_id),
            status=status,
            payment_result=json.dumps({"id": "tx-bdd", "status": status}),
        ),
        asynchronous=False,
    )
    if result["applied"]:
        advance(order_id)


def reload(order):
    return current_domain.repository_for(Order).get(order.id)


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('the catalogue sells "{product_id}" at {price:g} with {stock:d} in stock'))
def catalogue_sells(collaborators, product_id, price, stock):
    collaborators.catalogue.add_product(product_id, f"Product {product_id}", price)
    collaborators.stock.set_stock(product_id, stock)


@given(
    parsers.cfparse('a pending order for {first_qty:d} of "{first}" and {second_qty:d} of "{second}"'),
    target_fixture="order",
)
def pending_order(place_order, first_qty, first, second_qty, second):
    return place_order(
        items=[
            {"product_id": first, "quantity": first_qty},
            {"product_id": second, "quantity": second_qty},
        ]
    )


@given(parsers.cfparse('"{product_id}" stock drops to {quantity:d}'))
def stock_drops(collaborators, product_id, quantity):
    collaborators.stock.set_stock(product_id, quantity)


@given(parsers.cfparse('the payment outcome "{status}" arrives'))
@when(parsers.cfparse('the payment outcome "{status}" arrives'))
def payment_outcome_arrives(order, status):
    report_payment(order.id, status)


# ---------------------------------------------------------------------------
# Then steps (shared)
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the order status is "{status}"'))
def order_status_is(order, status):
    assert reload(order).status == status


@then(parsers.cfparse('"{product_id}" has {quantity:d} left in stock'))
def stock_left(collaborators, product_id, quantity):
    assert collaborators.stock.stock[product_id] == quantity
