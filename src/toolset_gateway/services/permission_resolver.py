"""Per-client toolset permission resolution."""

import inspect
import logging
from collections.abc import Mapping
from typing import Any

from ..models.permissions import PermissionConfig, validate_permission_config

logger = logging.getLogger(__name__)


class PermissionResolver:
    """Computes the toolsets a client may use and memoises the answer per client id.

    Resolution never raises: any failure in the configured source falls back
    to the next one in the chain and, at worst, to an empty permission list.
    Cached entries never expire; call ``invalidate_cache`` for a client whose
    permissions changed.

    The resolver callback may be async. Only ``resolve_permissions_async``
    awaits it; the sync ``resolve_permissions`` treats a pending result as a
    resolver failure and falls back.
    """

    def __init__(self, config: PermissionConfig, log: logging.Logger | None = None) -> None:
        validate_permission_config(config)
        self._config = config
        self._normalized_header_name = config.header_name.lower()
        self._cache: dict[str, list[str]] = {}
        self._logger = log or logger

    @property
    def config(self) -> PermissionConfig:
        return self._config

    @property
    def cache_size(self) -> int:
        return len(self._cache)

    def resolve_permissions(self, client_id: str, headers: Mapping[str, str] | None = None) -> list[str]:
        cached = self._cache.get(client_id)
        if cached is not None:
            return list(cached)

        try:
            if self._config.source == "headers":
                permissions: Any = self._parse_header_permissions(headers)
            else:
                resolved = self._call_resolver(client_id)
                if inspect.isawaitable(resolved):
                    self._logger.warning(
                        f"Permission resolver for client {client_id} is async, "
                        "use resolve_permissions_async; trying fallback"
                    )
                    _discard(resolved)
                    resolved = None
                permissions = self._resolve_config_permissions(client_id, self._accept_list(client_id, resolved))
        except Exception as e:
            self._logger.error(f"Unexpected error resolving permissions for client {client_id}: {e}")
            permissions = []

        return self._remember(client_id, permissions)

    async def resolve_permissions_async(
        self, client_id: str, headers: Mapping[str, str] | None = None
    ) -> list[str]:
        """Same as ``resolve_permissions`` but awaits an async resolver callback."""
        cached = self._cache.get(client_id)
        if cached is not None:
            return list(cached)

        try:
            if self._config.source == "headers":
                permissions: Any = self._parse_header_permissions(headers)
            else:
                resolved = self._call_resolver(client_id)
                if inspect.isawaitable(resolved):
                    try:
                        resolved = await resolved
                    except Exception as e:
                        self._logger.warning(
                            f"Permission resolver declined client {client_id} ({e}), trying fallback"
                        )
                        resolved = None
                permissions = self._resolve_config_permissions(client_id, self._accept_list(client_id, resolved))
        except Exception as e:
            self._logger.error(f"Unexpected error resolving permissions for client {client_id}: {e}")
            permissions = []

        return self._remember(client_id, permissions)

    def invalidate_cache(self, client_id: str) -> None:
        self._cache.pop(client_id, None)

    def clear_cache(self) -> None:
        self._cache.clear()

    def _remember(self, client_id: str, permissions: Any) -> list[str]:
        if not isinstance(permissions, list):
            self._logger.warning(
                f"Permission resolution returned non-list for client {client_id}, using empty permissions"
            )
            permissions = []
        permissions = [name.strip() for name in permissions if isinstance(name, str) and name.strip()]
        self._cache[client_id] = permissions
        return list(permissions)

    def _parse_header_permissions(self, headers: Mapping[str, str] | None) -> list[str]:
        if not headers:
            return []
        value = self._find_header(headers)
        if not value:
            return []
        return [part.strip() for part in value.split(",") if part.strip()]

    def _find_header(self, headers: Mapping[str, str]) -> str | None:
        # Fast path: ASGI servers already lowercase header names
        value = headers.get(self._normalized_header_name)
        if value is not None:
            return value
        for key, candidate in headers.items():
            if isinstance(key, str) and key.lower() == self._normalized_header_name:
                return candidate
        return None

    def _call_resolver(self, client_id: str) -> Any:
        if self._config.resolver is None:
            return None
        try:
            return self._config.resolver(client_id)
        except Exception as e:
            self._logger.warning(f"Permission resolver declined client {client_id} ({e}), trying fallback")
            return None

    def _accept_list(self, client_id: str, result: Any) -> list[str] | None:
        if result is None or isinstance(result, list):
            return result
        self._logger.warning(f"Permission resolver returned non-list for client {client_id}, using fallback")
        return None

    def _resolve_config_permissions(self, client_id: str, resolved: list[str] | None) -> list[str]:
        if resolved is not None:
            return resolved

        if self._config.static_map is not None and client_id in self._config.static_map:
            # Present key wins even when its list is empty
            return list(self._config.static_map[client_id] or [])

        return list(self._config.default_permissions or [])


def _discard(awaitable: Any) -> None:
    # Close unawaited coroutines so they do not warn at garbage collection
    close = getattr(awaitable, "close", None)
    if callable(close):
        close()
