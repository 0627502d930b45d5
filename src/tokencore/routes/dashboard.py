"""Protected endpoint returning the authenticated caller."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ..security.auth import AuthContext, auth_dependency

router = APIRouter(tags=["dashboard"])


class DashboardResponse(BaseModel):
    login: str
    algorithm: str
    issuer: Optional[str] = None
    expiresAt: Optional[int] = None


@router.get("/dashboard", response_model=DashboardResponse)
def dashboard(context: AuthContext = Depends(auth_dependency)) -> DashboardResponse:
    return DashboardResponse(
        login=context.subject,
        algorithm=context.algorithm,
        issuer=context.issuer,
        expiresAt=context.expires_at,
    )
