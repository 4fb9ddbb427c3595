"""
Tests for the pure cart transitions
"""

import logging

import pytest

from cartstate.cart import AddProduct, Adjust, CartState, Clear, DecreaseCount, RestoreFromCache, StockCheckResult
from cartstate.cart import reducer


def _add(state, product, **provenance):
    return reducer.reduce(state, AddProduct(product=product, **provenance))


def _decrease(state, product):
    return reducer.reduce(state, DecreaseCount(product=product))


class TestAdd:
    """Tests for AddProduct."""

    def test_add_new_product(self, make_product):
        state = _add(CartState.initial(), make_product(), source="search", category_id="cat-1")

        item = state.items["prod-1"]
        assert item.count == 1
        assert item.source == "search"
        assert item.category_id == "cat-1"

    def test_add_existing_increments(self, make_product):
        product = make_product()
        state = _add(_add(CartState.initial(), product), product)

        assert state.items["prod-1"].count == 2

    def test_add_capped_by_stock(self, make_product):
        """Test that count never exceeds in-stock count."""
        product = make_product(in_stock_count=2)
        state = CartState.initial()
        for _ in range(5):
            state = _add(state, product)

        assert state.items["prod-1"].count == 2

    def test_add_keeps_first_provenance(self, make_product):
        """Test that a second add doesn't overwrite where the item came from."""
        product = make_product()
        state = _add(CartState.initial(), product, source="banner", story_id="story-1")
        state = _add(state, product, source="search", story_id="story-2", sub_category_id="sub-9")

        item = state.items["prod-1"]
        assert item.source == "banner"
        assert item.story_id == "story-1"
        assert item.sub_category_id is None

    def test_add_out_of_stock_product_is_not_inserted(self, make_product):
        state = _add(CartState.initial(), make_product(in_stock_count=0))

        assert state.is_empty

    def test_add_keeps_hint(self, make_product):
        state = _add(CartState(is_close_cart_screen_hint=True), make_product())
        assert state.is_close_cart_screen_hint is True

        state = _add(CartState.initial(), make_product())
        assert state.is_close_cart_screen_hint is False

    def test_add_uses_fresher_stock_figure(self, make_product):
        """Test that a stock drop in the catalog caps the existing count."""
        state = CartState.initial()
        for _ in range(4):
            state = _add(state, make_product(in_stock_count=5))

        state = _add(state, make_product(in_stock_count=2))

        assert state.items["prod-1"].count == 2
        assert state.items["prod-1"].product.in_stock_count == 2


class TestDecrease:
    """Tests for DecreaseCount."""

    def test_decrease_existing(self, make_product):
        product = make_product()
        state = _add(_add(CartState.initial(), product), product)

        state = _decrease(state, product)

        assert state.items["prod-1"].count == 1
        assert state.is_close_cart_screen_hint is True

    def test_decrease_to_zero_removes(self, make_product):
        product = make_product()
        state = _decrease(_add(CartState.initial(), product), product)

        assert "prod-1" not in state.items

    def test_decrease_absent_is_noop(self, make_product):
        """Test that decreasing a product that isn't in the cart keeps membership unchanged."""
        state = _add(CartState.initial(), make_product("a"))

        state = _decrease(state, make_product("b"))

        assert list(state.items) == ["a"]
        assert state.is_close_cart_screen_hint is True

    @pytest.mark.parametrize("stock", [1, 2, 3])
    def test_count_stays_within_stock(self, make_product, stock):
        """Test count bounds over a mixed sequence of adds and decreases."""
        product = make_product(in_stock_count=stock)
        state = CartState.initial()
        for op in "++++-+--+---+++-----":
            state = _add(state, product) if op == "+" else _decrease(state, product)
            item = state.items.get("prod-1")
            if item is not None:
                assert 0 < item.count <= stock

    def test_order_after_readd(self, make_product):
        """Test that a product removed and re-added moves to the end."""
        a, b = make_product("a"), make_product("b")
        state = _add(_add(CartState.initial(), a), b)

        state = _decrease(state, a)
        state = _add(state, a)

        assert list(state.items) == ["b", "a"]

    def test_update_keeps_position(self, make_product):
        a, b = make_product("a"), make_product("b")
        state = _add(_add(_add(CartState.initial(), a), b), a)

        assert list(state.items) == ["a", "b"]


class TestAdjust:
    """Tests for Adjust."""

    def test_adjust_overwrites_counts(self, make_product):
        state = CartState.initial()
        for product in (make_product("p"), make_product("q"), make_product("r")):
            state = _add(state, product)

        state = reducer.reduce(
            state,
            Adjust(missing_items=[
                StockCheckResult(product_id="p", available_quantity=3),
                StockCheckResult(product_id="q", available_quantity=0),
            ]),
        )

        assert list(state.items) == ["p", "r"]
        assert state.items["p"].count == 3
        assert state.items["r"].count == 1

    def test_adjust_is_idempotent(self, make_product):
        state = _add(CartState.initial(), make_product("p"))
        command = Adjust(missing_items=[StockCheckResult(product_id="p", available_quantity=3)])

        once = reducer.reduce(state, command)
        twice = reducer.reduce(once, command)

        assert twice == once

    def test_adjust_unknown_product_is_skipped(self, make_product, caplog):
        """Test that a correction for a product not in the cart is logged, not raised."""
        state = _add(CartState.initial(), make_product("p"))

        with caplog.at_level(logging.WARNING, logger="cartstate.cart.reducer"):
            adjusted = reducer.reduce(
                state,
                Adjust(missing_items=[StockCheckResult(product_id="ghost", available_quantity=2)]),
            )

        assert adjusted == state
        assert "ghost" in caplog.text

    def test_adjust_keeps_hint(self, make_product):
        state = _add(CartState(is_close_cart_screen_hint=False), make_product("p"))

        adjusted = reducer.reduce(state, Adjust(missing_items=[]))

        assert adjusted.is_close_cart_screen_hint is False


class TestClear:
    def test_clear_sets_hint(self, make_product):
        state = _add(CartState.initial(), make_product())

        cleared = reducer.reduce(state, Clear(close_cart_screen_hint=True))

        assert cleared.is_empty
        assert cleared.is_close_cart_screen_hint is True
        assert reducer.reduce(state, Clear(close_cart_screen_hint=False)).is_close_cart_screen_hint is False


class TestSnapshots:
    def test_previous_snapshot_untouched(self, make_product):
        """Test that transitions never mutate a snapshot someone else holds."""
        product = make_product()
        before = _add(CartState.initial(), product)

        after = _add(before, product)
        reducer.reduce(after, Clear(close_cart_screen_hint=True))

        assert before.items["prod-1"].count == 1
        assert after.items["prod-1"].count == 2

    def test_restore_is_not_reducible(self):
        with pytest.raises(TypeError):
            reducer.reduce(CartState.initial(), RestoreFromCache())
