"""
Admin gate for mutating routes.

Requests must carry ``Authorization: Bearer <ADMIN_TOKEN>``. With no
ADMIN_TOKEN configured, every mutating request is refused.
"""

import logging
import os
import secrets
from typing import Optional

from dotenv import load_dotenv
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

load_dotenv()

logger = logging.getLogger(__name__)

bearer = HTTPBearer(auto_error=False)


def admin_token() -> Optional[str]:
    return os.getenv("ADMIN_TOKEN") or None


def verify_admin(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
    expected: Optional[str] = Depends(admin_token),
) -> str:
    if credentials is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="You are not authenticated")
    if expected is None or not secrets.compare_digest(credentials.credentials, expected):
        logger.warning("Rejected admin request with invalid token")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You are not authorized")
    return "admin"
