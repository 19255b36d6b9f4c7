from datetime import date

import pytest
from pydantic import ValidationError as ModelValidationError

from backoffice.services.promos import PromoForm


class TestPromoForm:
    def test_code_is_normalized(self):
        assert PromoForm(code=" summer25 ", discount_value=25).code == "SUMMER25"

    @pytest.mark.parametrize(
        "values",
        [
            {"code": "AB", "discount_value": 10},
            {"code": "X" * 51, "discount_value": 10},
            {"code": "SALE", "discount_value": 0},
            {"code": "SALE", "discount_value": 10, "discount_type": "bogo"},
            {"code": "SALE", "discount_value": 150},
            {"code": "SALE", "discount_value": 10, "min_order_amount": -1},
            {"code": "SALE", "discount_value": 10, "starts_at": date(2024, 6, 10), "expires_at": date(2024, 6, 1)},
        ],
    )
    def test_rejects(self, values):
        with pytest.raises(ModelValidationError):
            PromoForm(**values)

    def test_fixed_discount_may_exceed_100(self):
        assert PromoForm(code="GIFT", discount_type="fixed", discount_value=500).discount_value == 500

    def test_payload_covers_whole_days(self):
        form = PromoForm(
            code="sale",
            discount_value=10,
            starts_at=date(2024, 6, 1),
            expires_at=date(2024, 6, 30),
        )

        payload = form.to_payload()

        assert payload["code"] == "SALE"
        assert payload["discountType"] == "percent"
        assert payload["startsAt"] == "2024-06-01T00:00:00+00:00"
        assert payload["expiresAt"] == "2024-06-30T23:59:59.999999+00:00"

    def test_payload_without_dates(self):
        payload = PromoForm(code="SALE", discount_value=10).to_payload()

        assert "startsAt" not in payload
        assert "expiresAt" not in payload
        assert payload["maxUses"] == 0


class TestPromosService:
    @pytest.mark.anyio
    async def test_create(self, backend, signed_in):
        backend.on("POST", "/admin/promo-codes", json={"data": {"id": 1, "code": "SALE"}})

        result = await signed_in.promos.save(PromoForm(code="sale", discount_value=10))

        assert result.ok
        assert result.message == "Промокод создан"
        assert backend.body(backend.requests[0])["code"] == "SALE"

    @pytest.mark.anyio
    async def test_duplicate_code(self, backend, signed_in):
        backend.on(
            "POST",
            "/admin/promo-codes",
            status=409,
            json={"error": {"code": "CONFLICT", "message": "Промокод уже существует"}},
        )

        result = await signed_in.promos.save(PromoForm(code="sale", discount_value=10))

        assert not result.ok
        assert result.message == "Промокод уже существует"

    @pytest.mark.anyio
    async def test_toggle_refetches_list(self, backend, signed_in):
        backend.on("PUT", "/admin/promo-codes/3", json={"data": {"id": 3, "isActive": False}})
        backend.on("GET", "/admin/promo-codes", json={"data": [{"id": 3, "isActive": False}], "meta": {"total": 1}})

        result = await signed_in.promos.toggle(3, False)

        assert result.message == "Промокод деактивирован"
        assert result.data == {"data": [{"id": 3, "isActive": False}], "total": 1}
        assert backend.body(backend.calls("PUT", "/admin/promo-codes/3")[0]) == {"isActive": False}
