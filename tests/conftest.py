import pytest
from decimal import Decimal
from pathlib import Path

from checkout import create_context
from checkout.models import Cart, Catalog, Product


@pytest.fixture(scope='function')
def context(tmp_path):
    """Engine context backed by an empty temporary data directory."""
    return create_context('config.TestConfig', overrides={'DATA_DIR': str(tmp_path)})


@pytest.fixture(scope='function')
def data_dir(context):
    """Directory holding the context's files."""
    return Path(context.config['DATA_DIR'])


@pytest.fixture(scope='function')
def catalog():
    """Stock catalog."""
    return Catalog.default()


@pytest.fixture(scope='function')
def laptop(catalog):
    return catalog.require(1)


@pytest.fixture(scope='function')
def phone(catalog):
    return catalog.require(2)


@pytest.fixture(scope='function')
def headphones(catalog):
    return catalog.require(3)


@pytest.fixture(scope='function')
def mouse(catalog):
    return catalog.require(6)


@pytest.fixture(scope='function')
def cart():
    """Empty cart."""
    return Cart()


@pytest.fixture(scope='function')
def cheap_product():
    """Product with a price that exercises half-up rounding."""
    return Product(99, 'Sticker', Decimal('0.125'))


@pytest.fixture(scope='function')
def write_data(data_dir):
    """Write a data file the way staff would edit it by hand."""
    def _write(name, text):
        path = data_dir / name
        path.write_text(text, encoding='utf-8')
        return path
    return _write
