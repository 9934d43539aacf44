from __future__ import annotations

import logging

from werkzeug.security import check_password_hash, generate_password_hash

from ..core.exceptions import AuthorizationError
from .model import SessionContext

logger = logging.getLogger(__name__)


def require_admin(session: SessionContext) -> None:
    if not session.is_admin:
        raise AuthorizationError("Admin mode is required for this action")


class AdminAuthService:
    """Use case: unlock admin mode with the shared PIN."""

    def __init__(self, pin: str):
        self._pin_hash = generate_password_hash(str(pin))

    def unlock(self, session: SessionContext, pin: str) -> bool:
        try:
            ok = check_password_hash(self._pin_hash, str(pin or ""))
        except ValueError:
            ok = False

        if not ok:
            logger.info("Admin unlock rejected")
            return False

        session.is_admin = True
        return True

    def lock(self, session: SessionContext) -> None:
        session.is_admin = False
