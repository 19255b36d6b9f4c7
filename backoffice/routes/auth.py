"""Operator login and identity"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..core.context import AdminContext
from .deps import UI_PREFIX, get_context, require_auth

router = APIRouter(prefix=f"{UI_PREFIX}/auth", tags=["Auth"])


class LoginRequest(BaseModel):
    email: str
    password: str


@router.post("/login")
async def login(request: LoginRequest, context: AdminContext = Depends(get_context)):
    result = await context.auth.login(request.email, request.password)
    if not result.success:
        return JSONResponse(status_code=401, content=result.to_dict())
    context.auth_lost = False
    return result.to_dict()


@router.post("/logout")
async def logout(context: AdminContext = Depends(get_context)):
    return context.auth.logout().to_dict()


@router.get("/check")
async def check(context: AdminContext = Depends(get_context)):
    result = context.auth.check()
    if context.auth_lost:
        return {"authenticated": False, "redirect_to": "/login"}
    return {"authenticated": result.authenticated, "redirect_to": result.redirect_to}


@router.get("/identity")
async def identity(context: AdminContext = Depends(require_auth)):
    """Who is signed in, decoded from the access token"""
    found = context.auth.get_identity()
    if found is None:
        return {"identity": None}
    return {"identity": {"id": found.id, "name": found.name, "role": found.role}}
