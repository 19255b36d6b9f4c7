import jwt
import pytest

from shop_api.tokens import TokenPair
from backoffice.core.config import AdminSettings
from backoffice.core.context import AdminContext


@pytest.fixture
def admin_settings(api_url):
    return AdminSettings(api_base_url=api_url)


@pytest.fixture
def admin(backend, admin_settings):
    return AdminContext(admin_settings, transport=backend.transport)


@pytest.fixture
def access_token():
    return jwt.encode({"sub": "1", "role": "admin"}, "server-secret", algorithm="HS256")


@pytest.fixture
def signed_in(admin, access_token):
    admin.tokens.save(TokenPair(access_token, "refresh-1"))
    return admin


@pytest.fixture
def category_tree():
    """
    Фигурки (1)
      Аниме (2)
        Чиби (4)
      Игры (3)
    Декор (5)
    """
    return [
        {
            "id": 1, "name": "Фигурки", "slug": "figures", "parentId": None, "displayOrder": 0,
            "children": [
                {
                    "id": 2, "name": "Аниме", "slug": "anime", "parentId": 1, "displayOrder": 0,
                    "children": [
                        {"id": 4, "name": "Чиби", "slug": "chibi", "parentId": 2, "displayOrder": 0, "children": []},
                    ],
                },
                {"id": 3, "name": "Игры", "slug": "games", "parentId": 1, "displayOrder": 1, "children": []},
            ],
        },
        {"id": 5, "name": "Декор", "slug": "decor", "parentId": None, "displayOrder": 1, "children": []},
    ]
