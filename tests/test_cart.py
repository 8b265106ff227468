"""Tests for the in-progress purchase/sale cart and the IVA totals."""

import pytest

from cart import (MSG_DUPLICATE, MSG_PRICE, MSG_QUANTITY, PURCHASE, SALE, TAX_RATE, Cart,
                  compute_totals, stock_message)
from models import LineItem, Product


@pytest.fixture
def rejected():
    return []


@pytest.fixture
def sale_cart(rejected):
    return Cart(SALE, on_reject=rejected.append)


@pytest.fixture
def purchase_cart(rejected):
    return Cart(PURCHASE, on_reject=rejected.append)


def test_totals_example_from_two_lines():
    totals = compute_totals([LineItem(1, 2, 10.00), LineItem(2, 1, 5.00)])

    assert totals.subtotal == pytest.approx(25.00)
    assert totals.tax == pytest.approx(3.75)
    assert totals.total == pytest.approx(28.75)


@pytest.mark.parametrize("lines", [
    [(1, 1, 0.01)],
    [(1, 3, 19.99), (2, 7, 0.35)],
    [(1, 100, 1234.5), (2, 1, 0.0), (3, 12, 3.333)],
])
def test_total_is_subtotal_plus_fifteen_percent(lines):
    totals = compute_totals([LineItem(*line) for line in lines])

    assert totals.tax == pytest.approx(totals.subtotal * 0.15)
    assert totals.total == pytest.approx(totals.subtotal * 1.15)


def test_empty_cart_totals_are_zero():
    totals = Cart().totals()

    assert (totals.subtotal, totals.tax, totals.total) == (0, 0, 0)
    assert TAX_RATE == 0.15


def test_add_returns_ordered_lines(sale_cart):
    sale_cart.add(1, 2, 10.0, stock=5)
    items = sale_cart.add(2, 1, 5.0, stock=5)

    assert [item.product_id for item in items] == [1, 2]
    assert items[0].subtotal == 20.0
    assert sale_cart.last_error is None


@pytest.mark.parametrize("quantity", [0, -1, -50, 1.5, "3", True])
def test_invalid_quantity_never_changes_length(sale_cart, rejected, quantity):
    sale_cart.add(1, 1, 2.0, stock=10)

    items = sale_cart.add(2, quantity, 2.0, stock=10)

    assert len(items) == 1
    assert rejected == [MSG_QUANTITY]
    assert sale_cart.last_error == MSG_QUANTITY


def test_negative_price_is_rejected(purchase_cart, rejected):
    items = purchase_cart.add(1, 1, -0.5)

    assert items == []
    assert rejected == [MSG_PRICE]


def test_sale_rejects_quantity_above_cached_stock(sale_cart, rejected):
    items = sale_cart.add(7, 5, 1.25, stock=3)

    assert items == []
    assert rejected == [stock_message(3)]
    assert "Stock insuficiente" in sale_cart.last_error


def test_sale_rejects_duplicate_product(sale_cart, rejected):
    sale_cart.add(7, 1, 1.25, stock=3)

    items = sale_cart.add(7, 1, 1.25, stock=3)

    assert len(items) == 1
    assert rejected == [MSG_DUPLICATE]


def test_purchase_allows_repeated_product_and_ignores_stock(purchase_cart, rejected):
    purchase_cart.add(7, 10, 0.8, stock=0)
    items = purchase_cart.add(7, 4, 0.9)

    assert len(items) == 2
    assert rejected == []


def test_add_product_uses_price_and_stock_for_sales(sale_cart, rejected):
    product = Product(id=3, code="00003", name="Cuaderno", price=1.5, stock=2)

    sale_cart.add_product(product, 3)
    items = sale_cart.add_product(product, 2)

    assert rejected == [stock_message(2)]
    assert items == [LineItem(3, 2, 1.5)]


def test_remove_preserves_order_of_remaining(sale_cart):
    for product_id in (1, 2, 3, 4):
        sale_cart.add(product_id, 1, 1.0)

    items = sale_cart.remove(1)

    assert [item.product_id for item in items] == [1, 3, 4]


@pytest.mark.parametrize("index", [-1, 3, 10])
def test_remove_out_of_range_keeps_list(sale_cart, index):
    for product_id in (1, 2, 3):
        sale_cart.add(product_id, 1, 1.0)

    assert len(sale_cart.remove(index)) == 3


def test_items_is_a_copy(sale_cart):
    sale_cart.add(1, 1, 1.0)

    sale_cart.items.clear()

    assert len(sale_cart) == 1


def test_clear_resets_cart(sale_cart):
    sale_cart.add(1, 1, 1.0)
    sale_cart.add(1, 1, 1.0)

    sale_cart.clear()

    assert not sale_cart
    assert sale_cart.last_error is None


def test_unknown_kind_is_an_error():
    with pytest.raises(ValueError):
        Cart("refund")


def test_discard_removes_only_the_given_lines(purchase_cart):
    purchase_cart.add(1, 1, 1.0)
    sent = purchase_cart.add(1, 2, 1.0)
    purchase_cart.add(1, 3, 1.0)

    items = purchase_cart.discard(sent)

    assert [item.quantity for item in items] == [3]
