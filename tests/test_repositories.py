import json
import os

import pytest

from caceres_store.models import Category, ErrorKind
from caceres_store.repositories import (
    CategoryRepository,
    ICategoryRepository,
    IOrderRepository,
    IProductRepository,
    OrderRepository,
    ProductRepository,
)
from caceres_store.services import CategoryService


def test_repositories_create_missing_files(tmp_path):
    directory = str(tmp_path / 'nuevo')
    repo = CategoryRepository(directory)
    assert os.path.exists(os.path.join(directory, 'categories.json'))
    assert repo.get_all_categories() == []


def test_repositories_implement_interfaces(tmp_path):
    directory = str(tmp_path)
    assert isinstance(CategoryRepository(directory), ICategoryRepository)
    assert isinstance(ProductRepository(directory), IProductRepository)
    assert isinstance(OrderRepository(directory), IOrderRepository)


def test_corrupt_json_is_treated_as_empty(tmp_path):
    path = tmp_path / 'products.json'
    path.write_text('{no es json', encoding='utf-8')
    assert ProductRepository(str(tmp_path)).get_all_products() == []


def test_upsert_and_delete(tmp_path):
    repo = CategoryRepository(str(tmp_path))
    repo.save_category(Category(id='a', name='A'))
    repo.save_category(Category(id='a', name='A2'))
    repo.save_category(Category(id='b', name='B', parent_id='a'))

    with open(tmp_path / 'categories.json', encoding='utf-8') as f:
        raw = json.load(f)
    assert [r['name'] for r in raw] == ['A2', 'B']

    assert repo.get_active_children('a')[0].id == 'b'
    assert repo.delete_category('a')['name'] == 'A2'
    assert repo.delete_category('a') is None
    assert not os.path.exists(str(tmp_path / 'categories.json.tmp'))


def test_product_from_dict_tolerates_nulls(data_dir):
    product = ProductRepository(data_dir).get_product('p3')
    assert product.in_stock is False
    assert product.stock_count == 0
    assert product.available == 0


def test_order_lookup_by_reference(data_dir):
    repo = OrderRepository(data_dir)
    assert repo.find_by_reference('ORDER-1700000000000').id == 'o1'
    assert repo.find_by_reference('ORDER-0') is None


class BrokenCategoryRepository:
    def get_active(self):
        raise OSError('sin disco')

    def get_active_children(self, parent_id):
        raise OSError('sin disco')


def test_storage_errors_become_results():
    service = CategoryService(BrokenCategoryRepository(), product_repo=None)
    result = service.get_navigation_tree()
    assert result.error == ErrorKind.STORAGE
    assert result.http_status == 503
    assert service.fetch_children('x').error == ErrorKind.STORAGE


@pytest.mark.parametrize('value,expected', [('true', True), ('0', False), (None, True)])
def test_category_is_active_parsing(value, expected):
    data = {'id': 'a', 'name': 'A'}
    if value is not None:
        data['is_active'] = value
    assert Category.from_dict(data).is_active is expected
