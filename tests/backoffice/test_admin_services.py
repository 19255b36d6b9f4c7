import httpx
import jwt
import pytest

from shop_api.errors import AuthError, BusinessError, ValidationError
from shop_api.tokens import TokenPair
from shop_api.uploads import UploadFile
from backoffice.services.actions import run_action
from backoffice.services.loyalty import parse_settings
from backoffice.services.products import build_product_payload


def _order(status: str = "new", **overrides) -> dict:
    body = {
        "id": 10,
        "orderNumber": "AV-10",
        "status": status,
        "subtotal": 1000,
        "totalPrice": 1000,
        "customerName": "Иван",
        "customerPhone": "+79001234567",
        "deliveryMethod": "courier",
        "paymentMethod": "card",
    }
    body.update(overrides)
    return {"data": body}


def _custom_order(status: str = "new", is_paid: bool = False) -> dict:
    return {
        "data": {
            "id": 20,
            "orderNumber": "AV-C-20",
            "status": status,
            "isPaid": is_paid,
            "customerName": "Иван",
            "customerPhone": "+79001234567",
            "customDetails": {"clientDescription": "Дракон", "fileUrls": ["/files/a.stl"]},
        }
    }


class TestAdminAuth:
    @pytest.mark.anyio
    async def test_login_stores_tokens(self, backend, admin):
        backend.on("POST", "/auth/login", json={"data": {"accessToken": "a", "refreshToken": "r"}})

        result = await admin.auth.login("admin@example.com", "secret")

        assert result.success
        assert result.redirect_to == "/"
        assert admin.tokens.load() == TokenPair("a", "r")
        assert admin.auth.check().authenticated

    @pytest.mark.anyio
    async def test_wrong_password(self, backend, admin):
        backend.on("POST", "/auth/login", status=401, json={"error": {"code": "UNAUTHORIZED"}})

        result = await admin.auth.login("admin@example.com", "nope")

        assert result.to_dict() == {
            "success": False,
            "redirect_to": None,
            "error_name": "Ошибка входа",
            "error_message": "Неверный email или пароль",
        }

    @pytest.mark.anyio
    async def test_disabled_account(self, backend, admin):
        backend.on(
            "POST",
            "/auth/login",
            status=403,
            json={"error": {"code": "ACCOUNT_DISABLED", "message": "Аккаунт заблокирован"}},
        )

        result = await admin.auth.login("admin@example.com", "secret")

        assert result.error_name == "Аккаунт деактивирован"
        assert result.error_message == "Аккаунт заблокирован"

    def test_identity_from_token(self, signed_in):
        identity = signed_in.auth.get_identity()

        assert identity.id == "1"
        assert identity.name == "Администратор"
        assert identity.role == "admin"

    def test_identity_of_non_admin(self, admin):
        token = jwt.encode({"sub": "2", "role": "manager"}, "k", algorithm="HS256")
        admin.tokens.save(TokenPair(token))

        assert admin.auth.get_identity().name == "Пользователь"

    def test_no_identity_when_signed_out(self, admin):
        assert admin.auth.get_identity() is None
        assert admin.auth.check().redirect_to == "/login"

    def test_logout(self, signed_in):
        assert signed_in.auth.logout().redirect_to == "/login"
        assert not signed_in.auth.check().authenticated

    def test_on_error(self, signed_in):
        outcome = signed_in.auth.on_error(BusinessError("x", status_code=400))
        assert not outcome.logout
        assert signed_in.tokens.load() is not None

        outcome = signed_in.auth.on_error(AuthError("x"))
        assert outcome.logout
        assert outcome.redirect_to == "/login"
        assert signed_in.tokens.load() is None

    @pytest.mark.anyio
    async def test_failed_refresh_marks_auth_lost(self, backend, signed_in):
        backend.on("GET", "/admin/orders", status=401)
        backend.on("POST", "/auth/refresh", status=401)

        with pytest.raises(AuthError):
            await signed_in.orders.list_orders()

        assert signed_in.auth_lost
        assert not signed_in.auth.check().authenticated


class TestRunAction:
    @pytest.mark.anyio
    async def test_success_refetches(self):
        async def call():
            return "created"

        async def refetch():
            return "fresh"

        result = await run_action("Test", call, success="Готово", failure="Ошибка", refetch=refetch)

        assert result.to_dict() == {"ok": True, "message": "Готово", "data": "fresh"}

    @pytest.mark.anyio
    async def test_failed_refetch_keeps_success(self):
        async def call():
            return "created"

        async def refetch():
            raise BusinessError("gone")

        result = await run_action("Test", call, success="Готово", failure="Ошибка", refetch=refetch)

        assert result.ok
        assert result.data == "created"

    @pytest.mark.anyio
    async def test_validation_errors_are_kept(self):
        async def call():
            raise ValidationError("Проверьте", {"name": "Введите название"})

        result = await run_action("Test", call, success="Готово", failure="Ошибка")

        assert result.to_dict()["fieldErrors"] == {"name": "Введите название"}

    @pytest.mark.anyio
    async def test_auth_errors_propagate(self):
        async def call():
            raise AuthError("expired")

        with pytest.raises(AuthError):
            await run_action("Test", call, success="Готово", failure="Ошибка")


class TestOrders:
    @pytest.mark.anyio
    async def test_detail_lists_legal_actions(self, backend, signed_in):
        backend.on("GET", "/admin/orders/10", json=_order("processing"))

        detail = await signed_in.orders.detail(10)

        assert detail["statusLabel"] == "В обработке"
        assert detail["actions"] == [{"target": "shipped", "label": "Отправить", "danger": False}]

    @pytest.mark.anyio
    async def test_illegal_status_change_sends_nothing(self, backend, signed_in):
        backend.on("GET", "/admin/orders/10", json=_order("shipped"))

        result = await signed_in.orders.change_status(10, "cancelled")

        assert not result.ok
        assert result.field_errors == {"status": "Недопустимый переход статуса"}
        assert backend.calls("PUT", "/admin/orders/10/status") == []

    @pytest.mark.anyio
    async def test_status_change(self, backend, signed_in):
        backend.on("GET", "/admin/orders/10", json=_order("new"))
        backend.on("PUT", "/admin/orders/10/status", json=_order("confirmed"))

        result = await signed_in.orders.change_status(10, "confirmed")

        assert result.ok
        assert backend.body(backend.calls("PUT", "/admin/orders/10/status")[0]) == {"status": "confirmed"}

    @pytest.mark.anyio
    async def test_blank_tracking_is_ignored(self, backend, signed_in):
        assert await signed_in.orders.set_tracking(10, "  ") is None
        assert backend.requests == []

    @pytest.mark.anyio
    async def test_list_rejects_unknown_status(self, signed_in):
        with pytest.raises(ValidationError):
            await signed_in.orders.list_orders(status="lost")


class TestCustomOrders:
    @pytest.mark.anyio
    async def test_detail(self, backend, signed_in):
        backend.on("GET", "/admin/custom-orders/20", json=_custom_order("new"))

        detail = await signed_in.custom_orders.detail(20)

        assert detail["canConfirm"] is True
        assert detail["canRequestPayment"] is True
        assert [a["target"] for a in detail["actions"]] == ["cancelled"]

    @pytest.mark.anyio
    async def test_confirm_sets_price(self, backend, signed_in):
        backend.on("GET", "/admin/custom-orders/20", json=_custom_order("new"))
        backend.on("POST", "/admin/custom-orders/20/confirm", json=_custom_order("confirmed"))

        result = await signed_in.custom_orders.confirm(20, 4500, "Печать PLA")

        assert result.ok
        assert result.message == "Заказ подтверждён, цена установлена"
        sent = backend.body(backend.calls("POST", "/admin/custom-orders/20/confirm")[0])
        assert sent == {"totalPrice": 4500, "adminNotes": "Печать PLA"}

    @pytest.mark.anyio
    async def test_confirm_only_new(self, backend, signed_in):
        backend.on("GET", "/admin/custom-orders/20", json=_custom_order("in_progress"))

        result = await signed_in.custom_orders.confirm(20, 4500)

        assert not result.ok
        assert backend.calls("POST", "/admin/custom-orders/20/confirm") == []

    @pytest.mark.anyio
    async def test_paid_order_gets_no_payment_link(self, backend, signed_in):
        backend.on("GET", "/admin/custom-orders/20", json=_custom_order("confirmed", is_paid=True))

        result = await signed_in.custom_orders.send_payment_link(20)

        assert not result.ok
        assert result.message == "Заказ не ожидает оплаты"

    @pytest.mark.anyio
    async def test_status_goes_through_order_endpoint(self, backend, signed_in):
        backend.on("GET", "/admin/custom-orders/20", json=_custom_order("ready"))
        backend.on("POST", "/admin/orders/20/status", json={"data": {"id": 20}})

        result = await signed_in.custom_orders.change_status(20, "delivered")

        assert result.ok
        assert backend.body(backend.calls("POST", "/admin/orders/20/status")[0]) == {"status": "delivered"}

    @pytest.mark.anyio
    async def test_new_cannot_jump_to_ready(self, backend, signed_in):
        backend.on("GET", "/admin/custom-orders/20", json=_custom_order("new"))

        result = await signed_in.custom_orders.change_status(20, "ready")

        assert not result.ok
        assert backend.calls("POST", "/admin/orders/20/status") == []

    @pytest.mark.anyio
    async def test_create_checks_items(self, backend, signed_in):
        result = await signed_in.custom_orders.create({
            "customerName": "Иван",
            "customerPhone": "+79001234567",
            "items": [{"name": "Дракон"}, {"name": ""}],
        })

        assert result.field_errors == {"items": "Заполните наименование для всех позиций"}
        assert backend.requests == []

    @pytest.mark.anyio
    async def test_uploads_continue_after_failure(self, backend, signed_in):
        backend.on("GET", "/admin/custom-orders/20", json=_custom_order("new"))
        uploaded = []

        def upload(request, match):
            uploaded.append(request)
            if len(uploaded) == 1:
                return httpx.Response(500)
            return httpx.Response(200, json={"data": {"url": "/files/b.stl"}})

        backend.on("POST", "/admin/custom-orders/20/files", upload)

        result = await signed_in.custom_orders.upload_files(
            20, [UploadFile("a.stl", b"a"), UploadFile("b.stl", b"b")]
        )

        assert [(u["filename"], u["ok"]) for u in result["uploads"]] == [("a.stl", False), ("b.stl", True)]
        assert result["uploads"][0]["error"] == "Не удалось загрузить файл"
        assert result["detail"]["order"]["orderNumber"] == "AV-C-20"

    @pytest.mark.anyio
    async def test_delete_file_sends_url(self, backend, signed_in):
        backend.on("GET", "/admin/custom-orders/20", json=_custom_order("new"))
        backend.on("DELETE", "/admin/custom-orders/20/files", status=204)

        result = await signed_in.custom_orders.delete_file(20, "/files/a.stl")

        assert result.ok
        assert backend.body(backend.calls("DELETE", "/admin/custom-orders/20/files")[0]) == {"url": "/files/a.stl"}


class TestProducts:
    def test_payload_skips_blank_optionals(self):
        payload = build_product_payload({
            "name": " Дракон ",
            "price": 1500,
            "stockQuantity": 3,
            "sku": "",
            "material": "PLA",
            "dimensionLength": 10,
            "isActive": False,
        })

        assert payload == {
            "name": "Дракон",
            "price": 1500,
            "stockQuantity": 3,
            "material": "PLA",
            "dimensions": {"length": 10, "width": 0, "height": 0},
        }

    def test_edit_sends_active_flag(self):
        assert build_product_payload({"name": "A", "price": 1, "isActive": False}, is_edit=True)["isActive"] is False

    def test_validation(self):
        with pytest.raises(ValidationError) as exc_info:
            build_product_payload({"name": "", "price": -1, "stockQuantity": -2})

        assert set(exc_info.value.field_errors) == {"name", "price", "stockQuantity"}

    @pytest.mark.anyio
    async def test_bulk_deactivate(self, backend, signed_in):
        backend.on("PUT", r"/admin/products/\d+", json={"data": {}})
        backend.on("GET", "/admin/products", json={"data": [], "meta": {"total": 0}})

        result = await signed_in.products.deactivate([1, 2, 3])

        assert result.message == "Деактивировано: 3 товаров"
        updates = backend.calls("PUT", r"/admin/products/\d+")
        assert sorted(r.url.path.rsplit("/", 1)[1] for r in updates) == ["1", "2", "3"]
        assert all(backend.body(r) == {"isActive": False} for r in updates)

    @pytest.mark.anyio
    async def test_deactivate_nothing(self, backend, signed_in):
        assert await signed_in.products.deactivate([]) is None
        assert backend.requests == []


class TestSettingsScreens:
    def test_loyalty_limits(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_settings({"referrerBonusPercent": 120, "referralWelcomeBonus": -5})

        assert exc_info.value.field_errors == {
            "referrerBonusPercent": "От 0 до 100%",
            "referralWelcomeBonus": "Не может быть отрицательным",
        }

    @pytest.mark.anyio
    async def test_loyalty_update(self, backend, signed_in):
        body = {"referrerBonusPercent": 5, "referralWelcomeBonus": 200, "isActive": True}
        backend.on("PUT", "/admin/loyalty/settings", json={"data": body})

        result = await signed_in.loyalty.update_settings(body)

        assert result.ok
        assert result.data == body

    @pytest.mark.anyio
    async def test_unsaved_content_block_is_none(self, backend, signed_in):
        backend.on("GET", "/content/hero", json={"title": "Фигурки на заказ"})
        backend.on("GET", "/content/footer", status=404)

        blocks = await signed_in.content.get_blocks()

        assert blocks == {"hero": {"title": "Фигурки на заказ"}, "footer": None}

    @pytest.mark.anyio
    async def test_content_update_wraps_data(self, backend, signed_in):
        backend.on("PUT", "/admin/content/hero", json={"data": {}})
        backend.on("GET", "/content/hero", json={"title": "Новый"})

        result = await signed_in.content.update_block("hero", {"title": "Новый"})

        assert result.message == "Главный экран обновлён"
        assert backend.body(backend.calls("PUT", "/admin/content/hero")[0]) == {"data": {"title": "Новый"}}

    @pytest.mark.anyio
    async def test_chart_period(self, backend, signed_in):
        backend.on("GET", "/admin/analytics/chart", json={"data": [{"date": "2024-06-01", "revenue": 100, "ordersCount": 2}]})

        points = await signed_in.analytics.chart("week")

        assert points[0].orders_count == 2
        with pytest.raises(ValidationError):
            await signed_in.analytics.chart("decade")
