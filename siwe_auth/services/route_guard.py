"""
Route Guard
Decides, per request, whether a path may be served without a session.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from siwe_auth.core.errors import InvalidToken
from siwe_auth.services.session_tokens import SessionClaims, SessionTokenService

logger = logging.getLogger(__name__)


class GuardState(str, Enum):
    UNCHECKED = "unchecked"
    ALLOWED = "allowed"
    DENIED = "denied"


@dataclass(frozen=True)
class GuardDecision:
    state: GuardState
    redirect_to: Optional[str] = None
    claims: Optional[SessionClaims] = None


class RouteGuard:
    def __init__(
        self,
        protected_paths: Iterable[str],
        landing_path: str,
        tokens: SessionTokenService,
    ):
        self.protected_paths = tuple(p.rstrip("/") or "/" for p in protected_paths)
        self.landing_path = landing_path
        self.tokens = tokens

    def is_protected(self, path: str) -> bool:
        # "/profile" guards "/profile" and "/profile/...", not "/profiles"
        for prefix in self.protected_paths:
            if prefix == "/" or path == prefix or path.startswith(prefix + "/"):
                return True
        return False

    def check(self, path: str, token: Optional[str]) -> GuardDecision:
        if not self.is_protected(path):
            return GuardDecision(GuardState.ALLOWED)

        try:
            claims = self.tokens.read(token)
        except InvalidToken as exc:
            logger.info(
                "Guard redirect",
                extra={"path": path, "has_token": bool(token), "reason": exc.message},
            )
            return GuardDecision(GuardState.DENIED, redirect_to=self.landing_path)

        return GuardDecision(GuardState.ALLOWED, claims=claims)
