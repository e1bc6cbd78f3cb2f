# storefront/deps.py
from typing import Optional

from fastapi import Depends, HTTPException, Request

from .auth import Session
from .context import Storefront
from .models import User


def get_storefront(request: Request) -> Storefront:
    return request.app.state.storefront


def optional_session(request: Request, sf: Storefront = Depends(get_storefront)) -> Optional[Session]:
    return sf.auth.session(request)


def require_session(session: Optional[Session] = Depends(optional_session)) -> Session:
    if session is None:
        raise HTTPException(status_code=401, detail="Not signed in")
    return session


async def current_user(
    session: Session = Depends(require_session), sf: Storefront = Depends(get_storefront)
) -> User:
    return await sf.users.ensure(session.subject, session.claims)


async def require_admin(
    session: Session = Depends(require_session), sf: Storefront = Depends(get_storefront)
) -> Session:
    if not await sf.auth.is_admin(session):
        raise HTTPException(status_code=403, detail="Admin only")
    return session
