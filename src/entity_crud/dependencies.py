"""Shared FastAPI dependencies.

Reusable type aliases and dependency functions that routers import.
Defined here (not in main.py) to avoid circular imports when routers
are registered in main.
"""

from typing import Annotated

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from entity_crud.db.session import get_db

DB = Annotated[AsyncSession, Depends(get_db)]

USER_ID_HEADER = "X-User-Id"


async def get_current_user_id(x_user_id: str | None = Header(default=None)) -> int:
    """Resolve the signed-in user id set by the upstream auth layer.

    Authentication happens in front of this service; deployments with a
    different scheme override this dependency via ``app.dependency_overrides``.
    """
    raw = (x_user_id or "").strip()
    if not raw.isascii() or not raw.isdigit():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Missing or invalid {USER_ID_HEADER} header.",
        )
    return int(raw)


CurrentUserId = Annotated[int, Depends(get_current_user_id)]
