import asyncio

import pytest


def test_first_add_creates_one_line_and_second_add_increments(signed_in, backend, products):
    cart = signed_in.cart

    asyncio.run(cart.add(products[1]))
    assert len(cart.items) == 1
    assert cart.items[0].quantity == 1
    assert len(backend.tables["carts"]) == 1

    asyncio.run(cart.add(products[1]))
    assert len(cart.items) == 1
    assert cart.items[0].quantity == 2
    assert len(backend.tables["carts"]) == 1
    assert backend.tables["carts"][0]["quantity"] == 2
    assert len(backend.calls_to("POST", "carts")) == 1


def test_add_stores_product_snapshot(signed_in, backend, products):
    asyncio.run(signed_in.cart.add(products[2]))
    backend.find("products", 2)["price"] = 1.0

    asyncio.run(signed_in.cart.load())
    assert signed_in.cart.items[0].product.price == 79.99
    assert backend.tables["carts"][0]["userId"] == signed_in.user.id


def test_add_requires_signed_in_user(shop, backend, products):
    asyncio.run(shop.cart.add(products[1]))
    assert shop.cart.items == []
    assert backend.calls_to("POST", "carts") == []


def test_failed_create_reloads_silently(signed_in, backend, products):
    backend.fail("POST", "carts")

    asyncio.run(signed_in.cart.add(products[1]))

    assert signed_in.cart.items == []
    assert signed_in.cart.loading is False
    assert len(backend.calls_to("GET", "carts")) >= 2


def test_failed_increment_keeps_optimistic_quantity(signed_in, backend, products):
    cart = signed_in.cart
    asyncio.run(cart.add(products[1]))
    backend.fail("PATCH", "carts")
    gets_before = len(backend.calls_to("GET", "carts"))

    asyncio.run(cart.add(products[1]))

    assert cart.items[0].quantity == 2
    assert backend.tables["carts"][0]["quantity"] == 1
    assert len(backend.calls_to("GET", "carts")) == gets_before


def test_update_quantity_zero_behaves_like_remove(signed_in, backend, products):
    cart = signed_in.cart
    asyncio.run(cart.add(products[1]))
    asyncio.run(cart.add(products[3]))
    first_id = cart.items[0].id

    asyncio.run(cart.update_quantity(first_id, 0))

    assert [item.product_id for item in cart.items] == [3]
    assert backend.find("carts", first_id) is None
    assert len(backend.calls_to("DELETE", "carts")) == 1


def test_update_quantity_rolls_back_on_failure(signed_in, backend, products):
    cart = signed_in.cart
    asyncio.run(cart.add(products[1]))
    item_id = cart.items[0].id
    backend.fail("PATCH", "carts")

    asyncio.run(cart.update_quantity(item_id, 5))

    assert cart.items[0].quantity == 1


def test_update_quantity_is_visible_before_response(signed_in, backend, products):
    cart = signed_in.cart
    asyncio.run(cart.add(products[1]))
    item_id = cart.items[0].id

    async def scenario():
        gate = backend.hold("PATCH", "carts")
        task = asyncio.create_task(cart.update_quantity(item_id, 4))
        await asyncio.sleep(0)
        seen = cart.items[0].quantity
        gate.set()
        await task
        return seen

    assert asyncio.run(scenario()) == 4
    assert backend.tables["carts"][0]["quantity"] == 4


def test_remove_rolls_back_on_failure(signed_in, backend, products):
    cart = signed_in.cart
    asyncio.run(cart.add(products[1]))
    asyncio.run(cart.add(products[3]))
    backend.fail("DELETE", "carts")

    asyncio.run(cart.remove(cart.items[0].id))

    assert [item.product_id for item in cart.items] == [1, 3]


def test_clear_deletes_every_line_for_the_user(signed_in, backend, products):
    backend.seed("carts", [{"id": 99, "userId": 999, "productId": 3, "product": backend.find("products", 3), "quantity": 1}])
    cart = signed_in.cart
    asyncio.run(cart.add(products[1]))
    asyncio.run(cart.add(products[2]))

    asyncio.run(cart.clear())

    assert cart.items == []
    assert [row["id"] for row in backend.tables["carts"]] == [99]


def test_failed_clear_reloads_instead_of_restoring(signed_in, backend, products):
    cart = signed_in.cart
    asyncio.run(cart.add(products[1]))
    backend.fail("DELETE", "carts")

    asyncio.run(cart.clear())

    assert [item.product_id for item in cart.items] == [1]


def test_total_price_tracks_lines(signed_in, products):
    cart = signed_in.cart
    assert cart.total_price() == 0

    asyncio.run(cart.add(products[1]))
    asyncio.run(cart.add(products[3]))
    asyncio.run(cart.add(products[3]))
    expected = 299.99 + 2 * 39.99
    assert cart.total_price() == pytest.approx(expected)
    assert cart.total_price() == cart.total_price()

    asyncio.run(cart.remove(cart.find(1).id))
    assert cart.total_price() == pytest.approx(2 * 39.99)
    assert cart.count() == 2


def test_load_sets_loading_only_when_not_silent(signed_in, backend):
    cart = signed_in.cart
    observed = []

    async def scenario(silent):
        gate = backend.hold("GET", "carts")
        task = asyncio.create_task(cart.load(silent=silent))
        await asyncio.sleep(0)
        observed.append(cart.loading)
        gate.set()
        await task

    asyncio.run(scenario(False))
    asyncio.run(scenario(True))
    assert observed == [True, False]
    assert cart.loading is False


def test_load_skips_rows_without_product_snapshot(signed_in, backend, products):
    backend.seed(
        "carts",
        [
            {"id": 10, "userId": signed_in.user.id, "productId": 1, "quantity": 2},
            {"id": 11, "userId": signed_in.user.id, "productId": 3, "product": products[3].to_wire(), "quantity": 1},
        ],
    )

    asyncio.run(signed_in.cart.load())

    assert [item.id for item in signed_in.cart.items] == [11]
    assert signed_in.cart.loading is False
