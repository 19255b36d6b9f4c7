import pytest

from shop_api.models import Product
from shop_api.tokens import TokenPair
from storefront.core.config import Settings
from storefront.core.session import SessionManager


@pytest.fixture
def settings(api_url):
    return Settings(api_base_url=api_url, delivery_debounce_seconds=0.01)


@pytest.fixture
def manager(backend, settings):
    return SessionManager(settings, transport=backend.transport)


@pytest.fixture
def session(manager):
    return manager.create_session()


@pytest.fixture
def sign_in():
    """Put a signed-in auth record into a session's store"""
    def _sign_in(session, user_id: int = 1):
        session.tokens.save_session(
            TokenPair("access-1", "refresh-1"),
            {"id": user_id, "firstName": "Иван", "role": "customer"},
        )
    return _sign_in


@pytest.fixture
def product(products):
    """Catalog product as a model"""
    def _product(product_id: int) -> Product:
        return Product.model_validate(products[product_id])
    return _product
