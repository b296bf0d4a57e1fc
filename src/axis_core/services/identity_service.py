"""Resolve API key credentials to a caller identity."""

from __future__ import annotations

import hashlib
import hmac
import logging
from dataclasses import dataclass
from typing import Any, Protocol

from axis_core.cache.keyed_cache import KeyedCache
from axis_core.cache.single_flight import SingleFlight
from axis_core.db.models.api_key import ApiKey
from axis_core.domain.enums import CompanyStatus
from axis_core.domain.errors import AuthenticationError, compose_error_message
from axis_core.domain.permissions import PermissionSet, permissions_from_api_key

logger = logging.getLogger(__name__)

API_KEY_CACHE_PREFIX = "api_key"


def hash_secret(secret_key: str) -> str:
    return hashlib.sha256(secret_key.encode("utf-8")).hexdigest()


class ApiKeyRepositoryProtocol(Protocol):
    def get_api_key(self, public_key: str) -> ApiKey | None: ...


@dataclass(slots=True, frozen=True)
class CallerIdentity:
    company_id: str
    api_key_id: str
    permissions: PermissionSet

    def to_dict(self) -> dict[str, Any]:
        return {
            "company_id": self.company_id,
            "api_key_id": self.api_key_id,
            "permissions": self.permissions.to_dict(),
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> CallerIdentity:
        return cls(
            company_id=str(payload["company_id"]),
            api_key_id=str(payload["api_key_id"]),
            permissions=PermissionSet.from_dict(payload.get("permissions") or {}),
        )


class IdentityService:
    """Looks up API keys once per burst of requests through single-flight.

    Rejected credentials raise ``AuthenticationError`` and are never cached,
    so a key fixed in the database is honoured on the next request.
    """

    def __init__(
        self,
        *,
        api_key_repository: ApiKeyRepositoryProtocol,
        cache: KeyedCache,
        single_flight: SingleFlight,
        ttl_seconds: int = 300,
        lock_timeout_ms: int = 3000,
    ) -> None:
        self._api_key_repository = api_key_repository
        self._cache = cache
        self._single_flight = single_flight
        self._ttl_seconds = ttl_seconds
        self._lock_timeout_ms = lock_timeout_ms

    @staticmethod
    def cache_key(public_key: str, secret_key: str) -> str:
        return KeyedCache.generate_key(
            {"public_key": public_key, "secret_key": secret_key},
            API_KEY_CACHE_PREFIX,
        )

    def resolve_api_key(self, public_key: str, secret_key: str) -> CallerIdentity:
        if not public_key or not secret_key:
            raise AuthenticationError()

        payload = self._single_flight.remember_with_lock(
            self.cache_key(public_key, secret_key),
            lambda: self._load(public_key, secret_key).to_dict(),
            ttl=self._ttl_seconds,
            lock_timeout_ms=self._lock_timeout_ms,
        )
        return CallerIdentity.from_dict(payload)

    def invalidate(self, public_key: str, secret_key: str) -> None:
        self._cache.delete(self.cache_key(public_key, secret_key))

    def _load(self, public_key: str, secret_key: str) -> CallerIdentity:
        api_key = self._api_key_repository.get_api_key(public_key)
        if api_key is None or not hmac.compare_digest(
            api_key.secret_key_hash,
            hash_secret(secret_key),
        ):
            logger.info("api_key_rejected", extra={"reason": "unknown_key"})
            raise AuthenticationError()
        if api_key.deleted_at is not None:
            logger.info("api_key_rejected", extra={"reason": "revoked"})
            raise AuthenticationError(
                message=compose_error_message(
                    cause="The API key was revoked.",
                    action="Create a new API key.",
                )
            )
        if api_key.company.status != CompanyStatus.ACTIVE:
            logger.info("api_key_rejected", extra={"reason": "company_inactive"})
            raise AuthenticationError(
                message=compose_error_message(
                    cause="The company owning this API key is not active.",
                    action="Contact support to reactivate the company.",
                )
            )
        return CallerIdentity(
            company_id=api_key.company_id,
            api_key_id=api_key.id,
            permissions=permissions_from_api_key(api_key),
        )
