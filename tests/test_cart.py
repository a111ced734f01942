import pytest

from caceres_store.models import Cart, CartItem, ErrorKind, NoticeKind, Product
from caceres_store.services.cart_service import CartService, cart_totals, reconcile_against_stock


def item(pid, price=10.0, quantity=1):
    return CartItem(product_id=pid, name=f'Producto {pid}', price=price, quantity=quantity)


def live(pid, price=10.0, stock=10, in_stock=True):
    return Product(id=pid, name=f'Producto {pid}', price=price, stock_count=stock, in_stock=in_stock)


# ═══════════════════════════════════════════════════════════════════════════
# RECONCILIACIÓN (función pura)
# ═══════════════════════════════════════════════════════════════════════════

def test_reconcile_without_changes_has_no_notices():
    cart = Cart(items=[item('a', quantity=2)])
    adjusted, notices = reconcile_against_stock(cart, {'a': live('a')})
    assert notices == []
    assert adjusted.to_list() == cart.to_list()


def test_reconcile_removes_missing_product():
    cart = Cart(items=[item('a'), item('ghost')])
    adjusted, notices = reconcile_against_stock(cart, {'a': live('a')})
    assert [i.product_id for i in adjusted.items] == ['a']
    assert [n.kind for n in notices] == [NoticeKind.REMOVED_NOT_FOUND]


@pytest.mark.parametrize('stock,in_stock', [(0, True), (5, False), (None, True)])
def test_reconcile_removes_out_of_stock(stock, in_stock):
    cart = Cart(items=[item('a')])
    adjusted, notices = reconcile_against_stock(cart, {'a': live('a', stock=stock, in_stock=in_stock)})
    assert adjusted.is_empty
    assert notices[0].kind == NoticeKind.REMOVED_OUT_OF_STOCK


def test_reconcile_clamps_quantity_and_updates_price():
    cart = Cart(items=[item('a', price=10.0, quantity=5)])
    adjusted, notices = reconcile_against_stock(cart, {'a': live('a', price=12.5, stock=2)})

    assert adjusted.items[0].quantity == 2
    assert adjusted.items[0].price == 12.5
    assert [n.kind for n in notices] == [NoticeKind.QUANTITY_REDUCED, NoticeKind.PRICE_UPDATED]
    assert notices[0].requested == 5
    assert notices[0].available == 2


def test_reconcile_does_not_mutate_input():
    cart = Cart(items=[item('a', price=10.0, quantity=5)])
    reconcile_against_stock(cart, {'a': live('a', price=1.0, stock=1)})
    assert cart.items[0].quantity == 5
    assert cart.items[0].price == 10.0


def test_totals_with_home_delivery():
    cart = Cart(items=[item('a', price=10.0, quantity=2), item('b', price=5.5)])
    assert cart_totals(cart, 'pickup') == {
        'total_items': 3, 'subtotal': 25.5, 'shipping': 0.0, 'total': 25.5,
    }
    assert cart_totals(cart, 'delivery')['total'] == pytest.approx(29.5)


# ═══════════════════════════════════════════════════════════════════════════
# SERVICIO (con repositorio)
# ═══════════════════════════════════════════════════════════════════════════

def test_add_item_validates_stock(container):
    service = container.cart_service
    result = service.add_item(Cart(), 'p2', 2)
    assert result.ok
    assert result.value.items[0].price == 79.99

    again = service.add_item(result.value, 'p2', 2)
    assert again.error == ErrorKind.CONFLICT
    assert again.details['available'] == 3


def test_add_item_errors(container):
    service = container.cart_service
    assert service.add_item(Cart(), 'nope').error == ErrorKind.NOT_FOUND
    assert service.add_item(Cart(), 'p3').error == ErrorKind.CONFLICT
    assert service.add_item(Cart(), 'p1', 0).error == ErrorKind.VALIDATION


def test_add_same_product_merges_lines(container):
    service = container.cart_service
    cart = service.add_item(Cart(), 'p1', 1).value
    cart = service.add_item(cart, 'p1', 2).value
    assert len(cart.items) == 1
    assert cart.items[0].quantity == 3
    assert cart.items[0].image == 'zelda.jpg'


def test_update_quantity_and_remove(container):
    service = container.cart_service
    cart = service.add_item(Cart(), 'p1', 1).value

    updated = service.update_quantity(cart, 'p1', 4)
    assert updated.value.items[0].quantity == 4
    assert cart.items[0].quantity == 1

    assert service.update_quantity(cart, 'p1', 11).error == ErrorKind.CONFLICT
    assert service.update_quantity(cart, 'p1', 0).value.is_empty
    assert service.remove_item(cart, 'p2').error == ErrorKind.NOT_FOUND
    assert service.clear().value.is_empty


def test_service_reconcile_reads_live_stock(container):
    cart = Cart(items=[item('p1', price=59.99, quantity=20), item('p3', price=69.99)])
    result = container.cart_service.reconcile(cart)
    adjusted, notices = result.value
    assert [i.quantity for i in adjusted.items] == [10]
    kinds = {n.kind for n in notices}
    assert kinds == {NoticeKind.QUANTITY_REDUCED, NoticeKind.REMOVED_OUT_OF_STOCK}


def test_reconcile_uses_injected_stock_loader():
    calls = []

    def loader():
        calls.append(1)
        return {'a': live('a', price=12.0, stock=1)}

    service = CartService(product_repo=None, stock_loader=loader)
    adjusted, notices = service.reconcile(Cart(items=[item('a', quantity=3)])).value
    assert calls == [1]
    assert adjusted.items[0].quantity == 1
    assert adjusted.items[0].price == 12.0
    assert [n.kind for n in notices] == [NoticeKind.QUANTITY_REDUCED, NoticeKind.PRICE_UPDATED]


def test_reconcile_storage_error():
    def loader():
        raise OSError('sin disco')

    result = CartService(product_repo=None, stock_loader=loader).reconcile(Cart(items=[item('a')]))
    assert result.error == ErrorKind.STORAGE
