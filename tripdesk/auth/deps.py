from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError

from tripdesk.config import settings
from tripdesk.services import auth as auth_service


# tokens are issued by the identity service; we only verify them
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


@dataclass(frozen=True)
class Actor:
    subject: str


async def get_current_actor(request: Request, token: Optional[str] = Depends(oauth2_scheme)) -> Actor:
    token = token or request.cookies.get(settings.ACCESS_TOKEN_COOKIE)
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    try:
        subject = auth_service.verify_access_token(token)
    except JWTError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid authentication credentials")
    return Actor(subject=subject)
