"""Machine-to-machine API key lookup in SSM Parameter Store.

The key is a SecureString parameter. Each store keeps its own copy for a
short TTL so a rotated key is picked up without a redeploy.
"""

import threading
import time
from functools import lru_cache

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from salonbook.models import BookingError, ErrorCode
from salonbook.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_TTL_SECONDS = 300


class ServiceKeyStore:
    """Reads the service API key from SSM with a per-instance TTL cache.

    A missing parameter means no key is configured (``None``); any other
    SSM failure rejects the request as an unverifiable credential.
    """

    def __init__(
        self,
        parameter_name: str,
        client=None,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
    ) -> None:
        self.parameter_name = parameter_name
        self._client = client or boto3.client("ssm")
        self._ttl_seconds = ttl_seconds
        self._value: str | None = None
        self._fetched_at: float | None = None
        self._lock = threading.Lock()

    def get_api_key(self) -> str | None:
        with self._lock:
            now = time.monotonic()
            if self._fetched_at is not None and now - self._fetched_at < self._ttl_seconds:
                return self._value

            self._value = self._fetch()
            self._fetched_at = now
            return self._value

    def invalidate(self) -> None:
        with self._lock:
            self._value = None
            self._fetched_at = None

    def _fetch(self) -> str | None:
        try:
            response = self._client.get_parameter(
                Name=self.parameter_name, WithDecryption=True
            )
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "Unknown")
            if code == "ParameterNotFound":
                logger.warning(
                    "Service API key parameter not found",
                    extra={"parameter": self.parameter_name},
                )
                return None
            logger.error(
                "Service API key lookup failed",
                extra={"parameter": self.parameter_name, "error_code": code},
            )
            raise BookingError(
                ErrorCode.INVALID_TOKEN, {"reason": "service_key_unavailable"}
            ) from e
        except BotoCoreError as e:
            logger.error(
                "Service API key lookup failed",
                extra={"parameter": self.parameter_name, "error": str(e)},
            )
            raise BookingError(
                ErrorCode.INVALID_TOKEN, {"reason": "service_key_unavailable"}
            ) from e

        return response["Parameter"]["Value"] or None


@lru_cache(maxsize=8)
def get_service_key_store(parameter_name: str) -> ServiceKeyStore:
    """Shared store per parameter name."""
    return ServiceKeyStore(parameter_name)
