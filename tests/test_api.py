import logging

from caceres_store.app_container import AppContainer
from caceres_store.config import Config
from caceres_store.main import create_app


def checkout_payload(payment_method='cash'):
    return {
        'customer': {
            'first_name': 'Carlos', 'last_name': 'Cáceres',
            'email': 'carlos@example.com', 'phone': '7000-0000',
        },
        'delivery': {'delivery_type': 'pickup', 'delivery_point': 'galerias'},
        'payment_method': payment_method,
    }


# ═══════════════════════════════════════════════════════════════════════════
# CATÁLOGO
# ═══════════════════════════════════════════════════════════════════════════

def test_categories_tree(client):
    r = client.get('/api/categories')
    assert r.status_code == 200
    data = r.get_json()
    assert data['ok'] is True
    assert [c['name'] for c in data['categories']] == ['Nintendo', 'PlayStation']
    assert r.headers['X-Frame-Options'] == 'DENY'


def test_categories_search(client):
    data = client.get('/api/categories?q=ps5').get_json()
    assert [c['id'] for c in data['categories']] == ['c-playstation']


def test_category_children(client):
    r = client.get('/api/categories/c-nintendo/children')
    assert r.status_code == 200
    children = r.get_json()['category']['children']
    assert [c['id'] for c in children] == ['c-switch-games', 'c-switch-acc']

    assert client.get('/api/categories/nope/children').status_code == 404


def test_products_listing(client):
    data = client.get('/api/products').get_json()
    # p3 está agotado; más nuevos primero
    assert [p['id'] for p in data['products']] == ['p2', 'p1']

    data = client.get('/api/products?category=nintendo&q=zelda').get_json()
    assert [p['id'] for p in data['products']] == ['p1']

    data = client.get('/api/products?category=accesorios').get_json()
    assert [p['id'] for p in data['products']] == ['p2']


# ═══════════════════════════════════════════════════════════════════════════
# CARRITO Y CHECKOUT
# ═══════════════════════════════════════════════════════════════════════════

def test_cart_flow_in_session(client):
    r = client.post('/api/cart/add', json={'id': 'p1', 'quantity': 2})
    assert r.status_code == 200
    assert r.get_json()['cart']['total_items'] == 2

    r = client.post('/api/cart/add', json={'id': 'p2', 'quantity': 5})
    assert r.status_code == 409

    client.post('/api/cart/update', json={'id': 'p1', 'quantity': 3})
    cart = client.get('/api/cart?delivery_type=delivery').get_json()['cart']
    assert cart['total_items'] == 3
    assert cart['shipping'] == 4.0
    assert cart['total'] == round(59.99 * 3 + 4.0, 2)

    client.post('/api/cart/remove', json={'id': 'p1'})
    assert client.get('/api/cart').get_json()['cart']['items'] == []

    assert client.post('/api/cart/add', json={'id': 'nope'}).status_code == 404


def test_cart_clear(client):
    client.post('/api/cart/add', json={'id': 'p1'})
    r = client.post('/api/cart/clear')
    assert r.get_json()['cart']['items'] == []


def test_cart_reconcile_endpoint(client):
    with client.session_transaction() as sess:
        sess['carrito'] = [
            {'id': 'p1', 'name': 'Zelda', 'price': 50.0, 'quantity': 1},
            {'id': 'p3', 'name': 'Spider-Man 2', 'price': 69.99, 'quantity': 1},
        ]
    data = client.post('/api/cart/reconcile').get_json()
    assert {n['kind'] for n in data['notices']} == {'PRICE_UPDATED', 'REMOVED_OUT_OF_STOCK'}
    assert [i['id'] for i in data['cart']['items']] == ['p1']
    assert data['cart']['items'][0]['price'] == 59.99


def test_checkout_clears_cart(client):
    client.post('/api/cart/add', json={'id': 'p1', 'quantity': 1})
    r = client.post('/api/checkout', json=checkout_payload())
    assert r.status_code == 200, r.get_json()
    order = r.get_json()['order']
    assert order['status'] == 'pendiente'
    assert order['payment_status'] == 'pending'
    assert client.get('/api/cart').get_json()['cart']['items'] == []


def test_checkout_conflict_returns_notices(client):
    with client.session_transaction() as sess:
        sess['carrito'] = [{'id': 'p2', 'name': 'Joy-Con', 'price': 79.99, 'quantity': 9}]
    r = client.post('/api/checkout', json=checkout_payload())
    assert r.status_code == 409
    data = r.get_json()
    assert data['ok'] is False
    assert data['error_kind'] == 'CONFLICT'
    assert data['notices'][0]['kind'] == 'QUANTITY_REDUCED'
    # el carrito ajustado queda en sesión
    assert client.get('/api/cart').get_json()['cart']['items'][0]['quantity'] == 3


def test_checkout_validation_error(client):
    client.post('/api/cart/add', json={'id': 'p1'})
    payload = checkout_payload()
    payload['customer']['email'] = 'sin-arroba'
    r = client.post('/api/checkout', json=payload)
    assert r.status_code == 400
    assert r.get_json()['error'] == 'Por favor ingresa un email válido.'


def test_checkout_accepts_numeric_phone(client):
    client.post('/api/cart/add', json={'id': 'p1'})
    payload = checkout_payload()
    payload['customer']['phone'] = 71234567
    r = client.post('/api/checkout', json=payload)
    assert r.status_code == 200, r.get_json()
    assert r.get_json()['order']['customer_phone'] == '71234567'


def test_checkout_non_string_fields_are_validation_errors(client):
    client.post('/api/cart/add', json={'id': 'p1'})
    payload = checkout_payload()
    payload['customer']['first_name'] = None
    payload['delivery']['delivery_point'] = 12
    r = client.post('/api/checkout', json=payload)
    assert r.status_code == 400


def test_payment_webhook(client):
    client.post('/api/cart/add', json={'id': 'p1'})
    order = client.post('/api/checkout', json=checkout_payload('card')).get_json()['order']

    r = client.post('/api/webhooks/payment', json={
        'reference': order['payment_reference'], 'status': 'APPROVED', 'transaction_id': 'tx-9',
    })
    assert r.status_code == 200
    assert r.get_json()['payment_status'] == 'approved'

    r = client.post('/api/webhooks/payment', json={'reference': 'ORDER-0', 'status': 'APPROVED'})
    assert r.status_code == 404


def test_delivery_points(client):
    points = client.get('/api/delivery-points').get_json()['delivery_points']
    assert {'id': 'metrocentro', 'name': 'Metrocentro'} in points


# ═══════════════════════════════════════════════════════════════════════════
# ADMIN
# ═══════════════════════════════════════════════════════════════════════════

def test_admin_endpoints_require_login(client):
    r = client.get('/api/admin/dashboard')
    assert r.status_code == 401
    assert r.get_json()['error_kind'] == 'UNAUTHORIZED'


def test_admin_login_rejects_bad_password(client):
    r = client.post('/api/admin/login', json={'email': 'admin@caceresvideogames.com', 'password': 'x'})
    assert r.status_code == 401


def test_admin_expired_session(client):
    with client.session_transaction() as sess:
        sess['admin_session'] = {
            'admin_id': 'admin', 'email': 'admin@caceresvideogames.com',
            'issued_at': '2020-01-01T00:00:00+00:00', 'expires_at': '2020-01-01T08:00:00+00:00',
        }
    r = client.get('/api/admin/categories')
    assert r.status_code == 401
    assert r.get_json()['error_kind'] == 'EXPIRED'


def test_admin_dashboard(admin_client):
    r = admin_client.get('/api/admin/dashboard')
    assert r.status_code == 200
    dashboard = r.get_json()['dashboard']
    # o1 (APPROVED) + o2 (completada)
    assert dashboard['summary']['total_orders'] == 2
    assert dashboard['summary']['total_revenue'] == round(59.99 + 83.99, 2)
    assert dashboard['summary']['pending_orders'] == 1
    assert [p['period'] for p in dashboard['revenue_trend']] == ['2024-03', '2024-04']
    assert dashboard['revenue_trend'][0]['label'] == 'marzo 2024'
    assert {c['name'] for c in dashboard['categories']} == {'Nintendo'}
    assert dashboard['inventory']['out_of_stock_count'] == 1


def test_admin_category_management(admin_client):
    r = admin_client.post('/api/admin/categories', json={'name': 'Xbox', 'sort_order': 4})
    assert r.status_code == 200
    new_id = r.get_json()['category']['id']

    r = admin_client.post(f'/api/admin/categories/{new_id}/toggle')
    assert r.get_json()['category']['is_active'] is False

    r = admin_client.post(f'/api/admin/categories/{new_id}/delete')
    assert r.get_json()['action'] == 'deleted'

    r = admin_client.post('/api/admin/categories/c-ps5/delete')
    assert r.get_json()['action'] == 'deactivated'

    overview = admin_client.get('/api/admin/categories').get_json()['categories']
    assert {c['id'] for c in overview} == {
        'c-nintendo', 'c-playstation', 'c-switch-games', 'c-switch-acc', 'c-ps5', 'c-retro',
    }

    assert admin_client.post('/api/admin/categories', json={'name': ''}).status_code == 400


def test_admin_order_status_and_list(admin_client):
    r = admin_client.post('/api/admin/orders/o3/status', json={'status': 'enviada'})
    assert r.status_code == 200
    assert r.get_json()['order']['status'] == 'enviada'

    orders = admin_client.get('/api/admin/orders').get_json()['orders']
    assert orders[0]['id'] == 'o3'

    assert admin_client.post('/api/admin/orders/zzz/status', json={'status': 'x'}).status_code == 404


def test_admin_refresh_and_logout(admin_client):
    r = admin_client.post('/api/admin/refresh')
    assert r.status_code == 200
    assert 'expires_at' in r.get_json()['admin']

    admin_client.post('/api/admin/logout')
    assert admin_client.get('/api/admin/dashboard').status_code == 401


# ═══════════════════════════════════════════════════════════════════════════
# CONFIGURACIÓN
# ═══════════════════════════════════════════════════════════════════════════

def test_default_credentials_are_logged(data_dir, monkeypatch, caplog):
    monkeypatch.setattr(Config, 'SECRET_KEY', '')
    monkeypatch.setattr(Config, 'ADMIN_PASSWORD_HASH', '')
    monkeypatch.setattr(Config, 'ADMIN_PASSWORD', Config.DEFAULT_ADMIN_PASSWORD)
    with caplog.at_level(logging.WARNING, logger='caceres_store.main'):
        create_app(data_dir)
    AppContainer.reset_instance()
    assert 'STORE_SECRET_KEY' in caplog.text
    assert 'admin por defecto' in caplog.text


def test_configured_credentials_are_quiet(data_dir, monkeypatch, caplog):
    monkeypatch.setattr(Config, 'SECRET_KEY', 'otra-clave')
    monkeypatch.setattr(Config, 'ADMIN_PASSWORD', 'segura')
    with caplog.at_level(logging.WARNING, logger='caceres_store.main'):
        create_app(data_dir)
    AppContainer.reset_instance()
    assert caplog.text == ''
