"""Shared route dependencies"""

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from shop_api.errors import AuthError
from ..core.context import AdminContext
from ..services.actions import ActionResult

UI_PREFIX = "/admin-ui"


def get_context(request: Request) -> AdminContext:
    return request.app.state.admin


def require_auth(context: AdminContext = Depends(get_context)) -> AdminContext:
    """Screens other than login need a stored access token"""
    if context.auth_lost or not context.auth.check().authenticated:
        raise AuthError("Требуется авторизация", status_code=401)
    return context


def action_response(result: ActionResult) -> JSONResponse:
    """200 for a successful action, 422 or 400 with the toast text otherwise"""
    if result.ok:
        status = 200
    elif result.field_errors:
        status = 422
    else:
        status = 400
    return JSONResponse(status_code=status, content=result.to_dict())


def page_response(records: list, total: int) -> dict:
    return {"data": records, "total": total}


async def handle_auth_error(request: Request, exc: AuthError) -> JSONResponse:
    """Lost authentication sends the operator back to the login screen"""
    outcome = request.app.state.admin.auth.on_error(exc)
    body = exc.to_dict()
    body["redirectTo"] = outcome.redirect_to
    return JSONResponse(status_code=401, content=body)


def register_auth_redirect(app: FastAPI) -> None:
    app.add_exception_handler(AuthError, handle_auth_error)
