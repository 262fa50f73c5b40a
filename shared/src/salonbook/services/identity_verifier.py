"""Bearer token verification against the identity provider's JWKS.

Claims are only trusted after the signature, expiry, issuer and (when
configured) audience have been checked. Signing keys are fetched over
HTTPS and cached per key id until the TTL runs out; an unknown ``kid``
forces one refresh so provider key rotation is picked up.
"""

import threading
import time
from typing import Any

import httpx
from jose import JWTError, jwt

from salonbook.config import get_settings
from salonbook.models import BookingError, ErrorCode, VerifiedIdentity
from salonbook.utils.logging import get_logger

logger = get_logger(__name__)


class IdentityVerifier:
    """Verifies provider-issued JWTs and extracts the caller's identity."""

    def __init__(
        self,
        jwks_url: str | None = None,
        issuer: str | None = None,
        audience: str | None = None,
        algorithms: list[str] | None = None,
        cache_ttl_seconds: int | None = None,
        http_client: httpx.Client | None = None,
    ) -> None:
        settings = get_settings()
        self.jwks_url = jwks_url or settings.identity_jwks_url
        self.issuer = issuer or settings.identity_issuer
        self.audience = audience or settings.identity_audience
        self.algorithms = algorithms or settings.identity_algorithms
        self.cache_ttl_seconds = (
            settings.jwks_cache_ttl_seconds if cache_ttl_seconds is None else cache_ttl_seconds
        )
        self._http = http_client

        self._keys: dict[str, dict[str, Any]] = {}
        self._fetched_at = 0.0
        self._lock = threading.Lock()

    def _fetch_jwks(self) -> list[dict[str, Any]]:
        if not self.jwks_url:
            raise BookingError(ErrorCode.INVALID_TOKEN, {"reason": "verifier_not_configured"})
        try:
            if self._http is not None:
                response = self._http.get(self.jwks_url, timeout=5.0)
            else:
                response = httpx.get(self.jwks_url, timeout=5.0)
            response.raise_for_status()
            return response.json().get("keys", [])
        except (httpx.HTTPError, ValueError) as e:
            logger.error("jwks_fetch_failed", extra={"url": self.jwks_url, "error": str(e)})
            raise BookingError(ErrorCode.INVALID_TOKEN, {"reason": "jwks_unavailable"}) from e

    def _refresh(self) -> None:
        keys = self._fetch_jwks()
        self._keys = {k["kid"]: k for k in keys if "kid" in k}
        self._fetched_at = time.monotonic()
        logger.debug("jwks_refreshed", extra={"key_count": len(self._keys)})

    def get_signing_key(self, kid: str) -> dict[str, Any]:
        """Return the JWK for ``kid``, refreshing the cache if stale or missing."""
        with self._lock:
            expired = time.monotonic() - self._fetched_at > self.cache_ttl_seconds
            if expired or kid not in self._keys:
                self._refresh()
            key = self._keys.get(kid)
        if key is None:
            raise BookingError(ErrorCode.INVALID_TOKEN, {"reason": "unknown_key"})
        return key

    def verify(self, token: str | None) -> VerifiedIdentity:
        """Verify a bearer token.

        Args:
            token: Raw JWT (without the ``Bearer`` prefix)

        Returns:
            VerifiedIdentity built from the ``sub``, ``email`` and ``name`` claims

        Raises:
            BookingError: AUTH_REQUIRED when no token is given, INVALID_TOKEN
                for anything that fails verification
        """
        if not token:
            raise BookingError(ErrorCode.AUTH_REQUIRED)

        try:
            header = jwt.get_unverified_header(token)
        except JWTError as e:
            raise BookingError(ErrorCode.INVALID_TOKEN, {"reason": "malformed"}) from e

        kid = header.get("kid")
        if not kid:
            raise BookingError(ErrorCode.INVALID_TOKEN, {"reason": "missing_kid"})

        key = self.get_signing_key(kid)

        options = {"verify_aud": self.audience is not None}
        try:
            claims = jwt.decode(
                token,
                key,
                algorithms=self.algorithms,
                audience=self.audience,
                issuer=self.issuer,
                options=options,
            )
        except JWTError as e:
            logger.info("token_rejected", extra={"error": str(e)})
            raise BookingError(ErrorCode.INVALID_TOKEN, {"reason": "verification_failed"}) from e

        sub = claims.get("sub")
        if not isinstance(sub, str) or not sub:
            raise BookingError(ErrorCode.INVALID_TOKEN, {"reason": "missing_subject"})

        email = claims.get("email")
        name = claims.get("name")
        return VerifiedIdentity(
            external_id=sub,
            email=email if isinstance(email, str) else None,
            name=name if isinstance(name, str) else None,
        )
