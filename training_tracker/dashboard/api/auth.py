from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from fastapi.security import HTTPAuthorizationCredentials
from pydantic import BaseModel

from ..dependencies import SessionRegistry, bearer_scheme, get_current_user, get_session_registry

router = APIRouter(prefix="/api/auth", tags=["auth"])


class LoginRequest(BaseModel):
    name: Optional[str] = None


@router.post("/login", response_model=Dict[str, Any])
async def login(
    request: LoginRequest,
    sessions: SessionRegistry = Depends(get_session_registry),
):
    """
    Demo login placeholder for the SSO flow, issues a bearer token
    """
    return sessions.login(request.name)


@router.get("/me", response_model=Dict[str, Any])
async def me(user: Dict[str, Any] = Depends(get_current_user)):
    return {"id": user["id"], "name": user["name"]}


@router.post("/logout", response_model=Dict[str, Any])
async def logout(
    user: Dict[str, Any] = Depends(get_current_user),
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    sessions: SessionRegistry = Depends(get_session_registry),
):
    return {"logged_out": sessions.logout(credentials.credentials)}
