from __future__ import annotations

import logging
import os
import threading
import time
import uuid
from dataclasses import dataclass
from typing import Dict, Optional

import jwt

from storefront.core.context.models import CheckoutContext, ContextSession
from storefront.core.search.repository import EntityRepository

log = logging.getLogger("storefront.context")

CONTEXT_TOKEN_HEADER = "x-sw-context-token"
DEFAULT_SALES_CHANNEL_ID = "98432def39fc4624b33213a56b8c944d"

_DEV_SIGNING_KEY = "storefront-dev-signing-key-change-me"


class ContextTokenConfigError(Exception):
    pass


@dataclass(frozen=True)
class TokenConfig:
    signing_key: str
    ttl_seconds: int = 86400
    default_sales_channel_id: str = DEFAULT_SALES_CHANNEL_ID
    leeway_seconds: int = 30


def load_token_config() -> TokenConfig:
    env = (os.getenv("STOREFRONT_ENV") or "dev").strip().lower()
    key = (os.getenv("STOREFRONT_SIGNING_KEY") or "").strip()
    if not key:
        if env == "prod":
            raise ContextTokenConfigError("Missing STOREFRONT_SIGNING_KEY (required in prod)")
        log.warning("STOREFRONT_SIGNING_KEY not set; using insecure dev signing key")
        key = _DEV_SIGNING_KEY

    ttl = int((os.getenv("STOREFRONT_CONTEXT_TTL_SECONDS") or "86400").strip() or "86400")
    sc = (os.getenv("STOREFRONT_SALES_CHANNEL_ID") or DEFAULT_SALES_CHANNEL_ID).strip()
    return TokenConfig(signing_key=key, ttl_seconds=max(60, ttl), default_sales_channel_id=sc)


class CheckoutContextService:
    """
    Issues and resolves storefront context tokens.

    A token is an HS256 JWT naming a session (``jti``). Anonymous sessions
    live only in the token; a session is stored server-side once a customer
    is bound to it, so logout and refresh take effect even though the token
    itself is unchanged. Tokens that fail verification, have expired, or name
    an invalidated session resolve to a fresh anonymous context.
    """

    def __init__(self, *, customers: EntityRepository, cfg: TokenConfig):
        self.customers = customers
        self.cfg = cfg
        self._lock = threading.Lock()
        self._sessions: Dict[str, ContextSession] = {}
        # jti -> expires_at of invalidated sessions, kept until the token expires
        self._revoked: Dict[str, int] = {}

    def _encode(self, session: ContextSession) -> str:
        claims = {
            "jti": session.jti,
            "sc": session.sales_channel_id,
            "iat": int(time.time()),
            "exp": session.expires_at,
        }
        return jwt.encode(claims, self.cfg.signing_key, algorithm="HS256")

    def _decode(self, token: str) -> Optional[Dict]:
        try:
            return jwt.decode(
                token,
                self.cfg.signing_key,
                algorithms=["HS256"],
                options={"verify_signature": True, "verify_exp": True},
                leeway=self.cfg.leeway_seconds,
            )
        except jwt.PyJWTError as e:
            log.info("context token rejected reason=%s", type(e).__name__)
            return None

    def _session_for(self, token: Optional[str]) -> Optional[ContextSession]:
        if not token:
            return None
        claims = self._decode(token)
        if not claims or not claims.get("jti"):
            return None
        jti = str(claims["jti"])
        with self._lock:
            if jti in self._revoked:
                return None
            session = self._sessions.get(jti)
        if session is None:
            return ContextSession(
                jti=jti,
                sales_channel_id=str(claims.get("sc") or self.cfg.default_sales_channel_id),
                expires_at=int(claims.get("exp") or 0),
            )
        if session.expires_at < int(time.time()):
            return None
        return session

    def _build(self, token: str, session: ContextSession) -> CheckoutContext:
        customer = None
        if session.customer_id:
            customer = self.customers.get(session.customer_id)
            if customer is None or not customer.active:
                customer = None
        return CheckoutContext(token=token, sales_channel_id=session.sales_channel_id, customer=customer)

    def _new_session(self, sales_channel_id: Optional[str], customer_id: Optional[str]) -> ContextSession:
        return ContextSession(
            jti=uuid.uuid4().hex,
            sales_channel_id=sales_channel_id or self.cfg.default_sales_channel_id,
            expires_at=int(time.time()) + self.cfg.ttl_seconds,
            customer_id=customer_id,
        )

    def _store(self, session: ContextSession) -> None:
        with self._lock:
            now = int(time.time())
            for jti in [k for k, s in self._sessions.items() if s.expires_at < now]:
                del self._sessions[jti]
            for jti in [k for k, exp in self._revoked.items() if exp < now]:
                del self._revoked[jti]
            self._sessions[session.jti] = session

    def stored_sessions(self) -> int:
        with self._lock:
            return len(self._sessions)

    def issue(self, *, sales_channel_id: Optional[str] = None, customer_id: Optional[str] = None) -> str:
        session = self._new_session(sales_channel_id, customer_id)
        if customer_id:
            self._store(session)
        return self._encode(session)

    def get(self, token: Optional[str], *, sales_channel_id: Optional[str] = None) -> CheckoutContext:
        session = self._session_for(token)
        if session is None:
            session = self._new_session(sales_channel_id, None)
            token = self._encode(session)
        return self._build(token, session)

    def refresh(self, sales_channel_id: str, token: str) -> CheckoutContext:
        """Re-read the session and customer snapshot behind ``token``."""
        session = self._session_for(token)
        if session is None or session.sales_channel_id != sales_channel_id:
            return self.get(None, sales_channel_id=sales_channel_id)
        return self._build(token, session)

    def bind_customer(self, token: str, customer_id: Optional[str]) -> str:
        """Attach (or detach, with None) a customer to the session behind ``token``."""
        session = self._session_for(token)
        if session is None:
            return self.issue(customer_id=customer_id)
        with self._lock:
            session.customer_id = customer_id
        self._store(session)
        return token

    def invalidate(self, token: str) -> None:
        """Revoke a stored session; anonymous tokens have nothing to revoke."""
        claims = self._decode(token) if token else None
        if not claims:
            return
        jti = str(claims.get("jti"))
        with self._lock:
            session = self._sessions.pop(jti, None)
            if session is not None:
                self._revoked[jti] = session.expires_at
