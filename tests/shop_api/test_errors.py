import httpx
import pytest

from shop_api.errors import (
    GENERIC_ERROR_MESSAGE,
    AuthError,
    BusinessError,
    ErrorKind,
    NetworkError,
    UnknownError,
    ValidationError,
    error_from_exception,
    error_from_response,
    http_status,
    user_message,
)


def _response(status: int, **kwargs) -> httpx.Response:
    return httpx.Response(status, request=httpx.Request("GET", "http://shop.test/api/v1/x"), **kwargs)


class TestErrorFromResponse:
    def test_nested_envelope(self):
        err = error_from_response(_response(409, json={"error": {"code": "OUT_OF_STOCK", "message": "Нет в наличии"}}))

        assert isinstance(err, BusinessError)
        assert err.kind == ErrorKind.BUSINESS
        assert err.code == "OUT_OF_STOCK"
        assert err.message == "Нет в наличии"
        assert err.status_code == 409

    def test_flat_message(self):
        err = error_from_response(_response(400, json={"code": "BAD", "message": "Плохой запрос"}))

        assert err.code == "BAD"
        assert err.server_message == "Плохой запрос"

    def test_string_error(self):
        err = error_from_response(_response(422, json={"error": "Неверный формат"}))

        assert err.message == "Неверный формат"

    def test_missing_message_uses_fallback(self):
        err = error_from_response(_response(400, json={}), fallback="Не удалось")

        assert err.message == "Не удалось"
        assert err.server_message is None

    def test_non_json_body(self):
        err = error_from_response(_response(502, text="Bad Gateway"))

        assert isinstance(err, UnknownError)
        assert err.message == GENERIC_ERROR_MESSAGE

    def test_401_is_auth(self):
        err = error_from_response(_response(401))

        assert isinstance(err, AuthError)
        assert err.message == "Требуется авторизация"

    def test_server_error_with_message_is_business(self):
        err = error_from_response(_response(500, json={"error": {"message": "Платёжный шлюз недоступен"}}))

        assert isinstance(err, BusinessError)
        assert err.message == "Платёжный шлюз недоступен"


class TestErrorFromException:
    def test_passes_api_errors_through(self):
        err = BusinessError("x")
        assert error_from_exception(err) is err

    def test_transport_error(self):
        assert isinstance(error_from_exception(httpx.ConnectError("down")), NetworkError)

    def test_status_error(self):
        response = _response(404, json={"error": {"message": "Не найдено"}})
        exc = httpx.HTTPStatusError("404", request=response.request, response=response)

        err = error_from_exception(exc)

        assert isinstance(err, BusinessError)
        assert err.message == "Не найдено"

    def test_anything_else(self):
        assert isinstance(error_from_exception(RuntimeError("boom")), UnknownError)


class TestUserMessage:
    def test_prefers_server_text(self):
        err = BusinessError("fallback", server_message="С сервера")
        assert user_message(err, "Ошибка") == "С сервера"

    def test_without_server_text_uses_fallback(self):
        assert user_message(UnknownError("internal"), "Ошибка") == "Ошибка"

    def test_validation_message_is_shown(self):
        assert user_message(ValidationError("Введите имя"), "Ошибка") == "Введите имя"

    def test_plain_exception(self):
        assert user_message(ValueError("x")) == GENERIC_ERROR_MESSAGE


class TestEnvelope:
    def test_to_dict_uses_kind_when_no_code(self):
        assert NetworkError("Нет соединения").to_dict() == {
            "error": {"code": "NETWORK", "message": "Нет соединения"}
        }

    def test_validation_fields(self):
        body = ValidationError("Проверьте данные", {"phone": "Введите телефон"}).to_dict()

        assert body["error"]["code"] == "VALIDATION_ERROR"
        assert body["error"]["fields"] == {"phone": "Введите телефон"}

    @pytest.mark.parametrize(
        "err, status",
        [
            (ValidationError("x"), 422),
            (AuthError("x"), 401),
            (BusinessError("x", status_code=409), 409),
            (BusinessError("x", status_code=503), 400),
            (BusinessError("x"), 400),
            (NetworkError("x"), 502),
            (UnknownError("x"), 500),
        ],
    )
    def test_http_status(self, err, status):
        assert http_status(err) == status
