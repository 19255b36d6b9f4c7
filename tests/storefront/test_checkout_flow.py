import asyncio
import json

import httpx
import pytest

from shop_api.errors import ValidationError
from shop_api.models import DeliveryCalculation, PickupPoint, PromoValidationResult
from storefront.services.checkout import DeliveryMethod, PROMO_NOT_FOUND
from storefront.services.telegram import parse_init_data


def _promo(code: str, amount: float, valid: bool = True, message=None) -> dict:
    return {
        "data": {
            "valid": valid,
            "code": code,
            "discountType": "fixed",
            "discountValue": amount,
            "discountAmount": amount,
            "message": message,
        }
    }


def _delivery(city: str, courier_cost: float = 350.0, point_ids=(7,)) -> dict:
    return {
        "data": {
            "courierOptions": [
                {"type": "courier", "name": f"Курьер {city}", "cost": courier_cost, "providerName": "cdek"}
            ],
            "pickupPoints": [
                {"id": pid, "name": f"ПВЗ {pid}", "address": "ул. Ленина, 1", "city": city}
                for pid in point_ids
            ],
            "hasPickupPoints": bool(point_ids),
        }
    }


def _city(request: httpx.Request) -> str:
    return json.loads(request.content)["city"]


def _order(total: float, **overrides) -> dict:
    body = {
        "id": 1,
        "orderNumber": "AV-1001",
        "status": "new",
        "subtotal": total,
        "totalPrice": total,
        "deliveryCost": 0,
        "discountAmount": 0,
        "customerName": "Иван",
        "customerPhone": "+79001234567",
        "deliveryMethod": "pickup",
        "paymentMethod": "cash",
    }
    body.update(overrides)
    return {"data": body}


@pytest.fixture
async def filled_cart(session, product):
    """Guest cart worth 1500"""
    await session.cart.add_item(product(1), 3)
    return session.cart


@pytest.fixture
def checkout(session):
    return session.checkout


class TestTotals:
    @pytest.mark.anyio
    async def test_final_total_never_negative(self, session, checkout, product):
        await session.cart.add_item(product(2))
        checkout.promo_result = PromoValidationResult(
            valid=True, code="BIG", discount_type="fixed", discount_value=1200, discount_amount=1200
        )

        assert checkout.subtotal == 1000
        assert checkout.final_total == 0

    @pytest.mark.anyio
    async def test_courier_adds_first_option_cost(self, checkout, filled_cart):
        checkout.delivery = DeliveryCalculation.model_validate(_delivery("Москва")["data"])

        checkout.set_delivery_method("courier")
        assert checkout.delivery_cost == 350
        assert checkout.final_total == 1850

        checkout.set_delivery_method("pickup_point")
        assert checkout.delivery_cost == 0

    @pytest.mark.anyio
    async def test_final_total_formula(self, checkout, filled_cart):
        checkout.delivery = DeliveryCalculation.model_validate(_delivery("Москва", courier_cost=200)["data"])
        checkout.set_delivery_method("courier")
        checkout.promo_result = PromoValidationResult(
            valid=True, code="P", discount_type="percent", discount_value=10, discount_amount=150
        )

        assert checkout.final_total == max(0, 1500 - 150 + 200)


class TestDeliveryMethod:
    def test_switching_away_clears_pickup_point(self, checkout):
        checkout.delivery = DeliveryCalculation.model_validate(_delivery("Москва")["data"])
        checkout.set_delivery_method("pickup_point")
        checkout.select_pickup_point(7)

        checkout.set_delivery_method("courier")
        assert checkout.form.pickup_point_id is None

        checkout.set_delivery_method("pickup_point")
        checkout.update_contact(name="Иван", phone="+79001234567")
        assert checkout.validate() is False
        assert "pickupPoint" in checkout.field_errors

    def test_unknown_pickup_point_is_rejected(self, checkout):
        checkout.delivery = DeliveryCalculation.model_validate(_delivery("Москва")["data"])

        with pytest.raises(ValidationError):
            checkout.select_pickup_point(99)

    def test_unknown_method_is_rejected(self, checkout):
        with pytest.raises(ValidationError) as exc_info:
            checkout.set_delivery_method("teleport")

        assert "deliveryMethod" in exc_info.value.field_errors

    def test_courier_requires_address(self, checkout):
        checkout.update_contact(name="Иван", phone="+79001234567")
        checkout.set_delivery_method("courier")

        assert checkout.validate() is False
        assert set(checkout.field_errors) == {"address"}

    def test_editing_a_field_clears_its_error(self, checkout):
        checkout.validate()
        assert "name" in checkout.field_errors

        checkout.update_contact(name="Иван")

        assert "name" not in checkout.field_errors


class TestPromo:
    @pytest.mark.anyio
    async def test_remove_restores_pre_promo_total(self, backend, checkout, filled_cart):
        backend.on("POST", "/promo/validate", json=_promo("SALE", 300))
        before = checkout.final_total

        await checkout.apply_promo(" SALE ")
        assert checkout.final_total == before - 300
        assert backend.body(backend.requests[-1]) == {"code": "SALE", "orderTotal": 1500}

        checkout.promo_error = "старая ошибка"
        checkout.remove_promo()

        assert checkout.promo_result is None
        assert checkout.promo_error == ""
        assert checkout.final_total == before

    @pytest.mark.anyio
    async def test_rejected_code_keeps_applied_promo(self, backend, checkout, filled_cart):
        backend.on("POST", "/promo/validate", json=_promo("SALE", 300))
        await checkout.apply_promo("SALE")
        backend.on(
            "POST",
            "/promo/validate",
            status=400,
            json={"error": {"code": "INVALID_PROMO", "message": "Промокод истёк"}},
        )

        assert await checkout.apply_promo("OLD") is None

        assert checkout.promo_error == "Промокод истёк"
        assert checkout.promo_result.code == "SALE"
        assert not checkout.promo_loading

    @pytest.mark.anyio
    async def test_invalid_result_without_message(self, backend, checkout, filled_cart):
        backend.on("POST", "/promo/validate", json=_promo("NOPE", 0, valid=False))

        await checkout.apply_promo("NOPE")

        assert checkout.promo_error == PROMO_NOT_FOUND
        assert checkout.promo_result is None

    @pytest.mark.anyio
    async def test_blank_code_sends_nothing(self, backend, checkout):
        assert await checkout.apply_promo("   ") is None
        assert backend.requests == []


class TestDeliveryLookup:
    @pytest.mark.anyio
    async def test_typing_settles_into_one_lookup(self, backend, checkout, filled_cart):
        backend.on("POST", "/delivery/calculate", lambda r, m: httpx.Response(
            200, json=_delivery(_city(r))
        ))

        checkout.set_city("М")
        checkout.set_city("Мос")
        checkout.set_city("Москва")
        await checkout.wait_for_delivery()

        calls = backend.calls("POST", "/delivery/calculate")
        assert [backend.body(c)["city"] for c in calls] == ["Москва"]
        assert checkout.delivery.courier_options[0].name == "Курьер Москва"

    @pytest.mark.anyio
    async def test_stale_lookup_is_discarded(self, backend, checkout, filled_cart):
        async def respond(request, match):
            city = _city(request)
            if city == "Москва":
                await asyncio.sleep(0.05)
            return httpx.Response(200, json=_delivery(city))

        backend.on("POST", "/delivery/calculate", respond)

        older, newer = await asyncio.gather(
            checkout.lookup_delivery("Москва"),
            checkout.lookup_delivery("Казань"),
        )

        assert older is None
        assert newer is not None
        assert checkout.delivery.courier_options[0].name == "Курьер Казань"
        assert not checkout.delivery_loading

    @pytest.mark.anyio
    async def test_clearing_city_discards_lookup_in_flight(self, backend, checkout, filled_cart):
        async def respond(request, match):
            await asyncio.sleep(0.05)
            return httpx.Response(200, json=_delivery(_city(request)))

        backend.on("POST", "/delivery/calculate", respond)

        older, cleared = await asyncio.gather(
            checkout.lookup_delivery("Москва"),
            checkout.lookup_delivery("   "),
        )

        assert older is None
        assert cleared is None
        assert checkout.delivery is None
        assert not checkout.delivery_loading
        assert len(backend.calls("POST", "/delivery/calculate")) == 1

    @pytest.mark.anyio
    async def test_empty_cart_skips_lookup(self, backend, checkout):
        assert await checkout.lookup_delivery("Москва") is None
        assert backend.requests == []

    @pytest.mark.anyio
    async def test_failure_sets_error(self, backend, checkout, filled_cart):
        backend.on("POST", "/delivery/calculate", status=503)

        await checkout.lookup_delivery("Москва")

        assert checkout.delivery is None
        assert checkout.delivery_error == "Не удалось рассчитать доставку"

    @pytest.mark.anyio
    async def test_selected_point_missing_from_new_city_is_dropped(self, backend, checkout, filled_cart):
        checkout.delivery = DeliveryCalculation(pickup_points=[
            PickupPoint(id=7, name="ПВЗ", address="ул. Мира, 2", city="Москва"),
        ])
        checkout.set_delivery_method("pickup_point")
        checkout.select_pickup_point(7)
        backend.on("POST", "/delivery/calculate", json=_delivery("Казань", point_ids=(8,)))

        await checkout.lookup_delivery("Казань")

        assert checkout.form.pickup_point_id is None


class TestSubmit:
    @pytest.mark.anyio
    async def test_places_order_and_empties_cart(self, backend, checkout, filled_cart):
        backend.on("POST", "/orders", json=_order(1500))
        checkout.update_contact(name="Иван", phone="+79001234567", payment_method="cash")
        checkout.set_delivery_method("pickup")

        result = await checkout.submit()

        assert result.order.total_price == 1500
        assert result.order.delivery_cost == 0
        assert result.order.discount_amount == 0
        assert result.confirmation_path == "/order/AV-1001"
        assert filled_cart.items == []

        sent = backend.body(backend.calls("POST", "/orders")[0])
        assert sent == {
            "items": [{"productId": 1, "quantity": 3}],
            "customerName": "Иван",
            "customerPhone": "+79001234567",
            "deliveryMethod": "pickup",
            "paymentMethod": "cash",
        }

    @pytest.mark.anyio
    async def test_missing_phone_sends_nothing(self, backend, checkout, filled_cart):
        checkout.update_contact(name="Иван", payment_method="cash")

        assert await checkout.submit() is None

        assert backend.requests == []
        assert checkout.field_errors == {"phone": "Введите телефон"}
        assert [(i.product_id, i.quantity) for i in filled_cart.items] == [(1, 3)]

    @pytest.mark.anyio
    async def test_short_phone(self, checkout, filled_cart):
        checkout.update_contact(name="Иван", phone="12-34")

        assert checkout.validate() is False
        assert checkout.field_errors["phone"] == "Некорректный номер телефона"

    @pytest.mark.anyio
    async def test_server_rejection_keeps_cart(self, backend, checkout, filled_cart):
        backend.on("POST", "/orders", status=409, json={"error": {"code": "OUT_OF_STOCK", "message": "Товар закончился"}})
        checkout.update_contact(name="Иван", phone="+79001234567")

        assert await checkout.submit() is None

        assert checkout.submit_error == "Товар закончился"
        assert not checkout.submitting
        assert len(filled_cart.items) == 1

    @pytest.mark.anyio
    async def test_courier_order_carries_address_and_city(self, backend, checkout, filled_cart):
        backend.on("POST", "/orders", json=_order(1850, deliveryMethod="courier"))
        checkout.update_contact(name="Иван", phone="+79001234567", address="ул. Пушкина, 10")
        checkout.form.city = "Москва"
        checkout.set_delivery_method("courier")

        await checkout.submit()

        sent = backend.body(backend.calls("POST", "/orders")[0])
        assert sent["deliveryAddress"] == "ул. Пушкина, 10"
        assert sent["city"] == "Москва"
        assert "pickupPointId" not in sent

    @pytest.mark.anyio
    async def test_second_submit_while_in_flight_is_ignored(self, backend, checkout, filled_cart):
        async def slow_order(request, match):
            await asyncio.sleep(0.05)
            return httpx.Response(200, json=_order(1500))

        backend.on("POST", "/orders", slow_order)
        checkout.update_contact(name="Иван", phone="+79001234567")

        first, second = await asyncio.gather(checkout.submit(), checkout.submit())

        assert first is not None
        assert second is None
        assert len(backend.calls("POST", "/orders")) == 1


class TestTelegramPrefill:
    def test_fills_empty_name_and_phone(self, session):
        session.telegram = parse_init_data('user={"id":42,"first_name":"Иван","last_name":"Петров"}')
        session.telegram.contact_phone = "79001234567"
        session.checkout.telegram = session.telegram

        session.checkout.apply_telegram_prefill()

        assert session.checkout.form.name == "Иван Петров"
        assert session.checkout.form.phone == "+79001234567"

    def test_keeps_typed_values(self, session):
        session.checkout.telegram = parse_init_data('user={"id":42,"first_name":"Иван"}')
        session.checkout.update_contact(name="Пётр")

        session.checkout.apply_telegram_prefill()

        assert session.checkout.form.name == "Пётр"

    def test_outside_telegram_nothing_changes(self, checkout):
        checkout.apply_telegram_prefill()

        assert checkout.form.name == ""
        assert checkout.form.delivery_method == DeliveryMethod.PICKUP
