"""
Login endpoint.

``POST /api/login`` authenticates an email/password pair and returns a
bearer token.  Unknown emails are registered on the spot.
"""

from typing import Optional

from fastapi import APIRouter, Depends

from linkshelf_api.app.api.deps import get_auth_service
from linkshelf_api.app.schemas.user import LoginRequest, LoginResponse
from linkshelf_api.app.services.auth_service import AuthService

router = APIRouter()


@router.post("/login", response_model=LoginResponse)
async def login(
    payload: Optional[LoginRequest] = None,
    service: AuthService = Depends(get_auth_service),
) -> LoginResponse:
    """Authenticate, or create the account on first login.

    ``created`` is true only when this request inserted the user.
    """
    payload = payload or LoginRequest()
    user, token, created = await service.authenticate(
        payload.email, payload.password, payload.display_name
    )
    return LoginResponse(user=user, token=token, created=created)
