import json
import os
import sys

import pytest

# ensure project root is on sys.path when running from tests/ folder
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from caceres_store.app_container import AppContainer
from caceres_store.main import create_app


CATEGORIES = [
    {'id': 'c-nintendo', 'name': 'Nintendo', 'slug': 'nintendo', 'parent_id': None,
     'sort_order': 1, 'is_active': True},
    {'id': 'c-playstation', 'name': 'PlayStation', 'slug': 'playstation', 'parent_id': None,
     'sort_order': 2, 'is_active': True},
    {'id': 'c-switch-games', 'name': 'Juegos Switch', 'slug': None, 'parent_id': 'c-nintendo',
     'sort_order': 1, 'is_active': True},
    {'id': 'c-switch-acc', 'name': 'Accesorios', 'slug': 'accesorios-switch',
     'parent_id': 'c-nintendo', 'sort_order': 2, 'is_active': True},
    {'id': 'c-ps5', 'name': 'Juegos PS5', 'slug': 'juegos-ps5', 'parent_id': 'c-playstation',
     'sort_order': None, 'is_active': True},
    {'id': 'c-retro', 'name': 'Retro', 'slug': 'retro', 'parent_id': None,
     'sort_order': 3, 'is_active': False},
]

PRODUCTS = [
    {'id': 'p1', 'sku': 'SW-001', 'name': 'Zelda Tears of the Kingdom', 'price': 59.99,
     'console': 'Nintendo Switch', 'category_id': 'c-switch-games',
     'parent_category_id': 'c-nintendo', 'in_stock': True, 'stock_count': 10,
     'image_urls': ['zelda.jpg'], 'created_at': '2024-01-10T10:00:00+00:00'},
    {'id': 'p2', 'sku': 'SW-ACC-01', 'name': 'Joy-Con Neon', 'price': 79.99,
     'console': 'Nintendo Switch', 'category_id': 'c-switch-acc',
     'parent_category_id': 'c-nintendo', 'in_stock': True, 'stock_count': 3,
     'image_urls': [], 'created_at': '2024-02-01T10:00:00+00:00'},
    {'id': 'p3', 'sku': 'PS5-001', 'name': 'Spider-Man 2', 'price': 69.99,
     'console': 'PlayStation 5', 'category_id': 'c-ps5',
     'parent_category_id': 'c-playstation', 'in_stock': False, 'stock_count': 0,
     'image_urls': [], 'created_at': '2024-03-01T10:00:00+00:00'},
]

ORDERS = [
    {'id': 'o1', 'product_id': 'p1', 'total_amount': 59.99, 'quantity': 1,
     'status': 'confirmed', 'payment_status': 'approved', 'payment_method': 'credit-debit',
     'payment_reference': 'ORDER-1700000000000', 'created_at': '2024-03-05T12:00:00+00:00'},
    {'id': 'o2', 'product_id': 'p2', 'total_amount': 83.99, 'quantity': 1,
     'status': 'completada', 'payment_status': 'pending', 'payment_method': 'cash',
     'created_at': '2024-04-02T12:00:00+00:00'},
    {'id': 'o3', 'product_id': 'p1', 'total_amount': 59.99, 'quantity': 1,
     'status': 'pendiente', 'payment_status': 'pending', 'payment_method': 'cash',
     'created_at': '2024-04-03T12:00:00+00:00'},
]


def write_json(directory, name, data):
    with open(os.path.join(directory, name), 'w', encoding='utf-8') as f:
        json.dump(data, f, ensure_ascii=False)


@pytest.fixture
def data_dir(tmp_path):
    directory = str(tmp_path / 'data')
    os.makedirs(directory)
    write_json(directory, 'categories.json', CATEGORIES)
    write_json(directory, 'products.json', PRODUCTS)
    write_json(directory, 'orders.json', ORDERS)
    return directory


@pytest.fixture
def app(data_dir):
    application = create_app(data_dir)
    application.config['TESTING'] = True
    yield application
    AppContainer.reset_instance()


@pytest.fixture
def container(app):
    return AppContainer.get_instance()


@pytest.fixture
def client(app):
    with app.test_client() as c:
        yield c


@pytest.fixture
def admin_client(client):
    r = client.post('/api/admin/login', json={
        'email': 'admin@caceresvideogames.com',
        'password': 'admin123',
    })
    assert r.status_code == 200, r.get_json()
    return client
