"""Per-client surface/orchestrator bundles held in a bounded cache."""

import asyncio
import logging
import uuid
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field

from ..errors import PermissionDeniedError
from ..models.permissions import ClientCacheConfig
from .client_cache import ClientResourceCache
from .mcp_surface import McpToolSurface
from .orchestrator import ServerOrchestrator
from .permission_resolver import PermissionResolver

logger = logging.getLogger(__name__)

CLIENT_ID_HEADER = "mcp-client-id"
ANONYMOUS_PREFIX = "anon-"


@dataclass
class ClientRequestContext:
    """Identity and headers of the client a bundle is created for."""

    client_id: str
    headers: Mapping[str, str] | None = None


@dataclass
class ClientBundle:
    """Everything one client owns: its surface, orchestrator and granted toolsets."""

    surface: McpToolSurface
    orchestrator: ServerOrchestrator
    allowed_toolsets: list[str] = field(default_factory=list)
    failed_toolsets: list[str] = field(default_factory=list)


BundleFactory = Callable[[ClientRequestContext], Awaitable[ClientBundle]]


def create_permission_aware_bundle(
    create_bundle: Callable[[list[str]], ClientBundle],
    permission_resolver: PermissionResolver,
) -> BundleFactory:
    """Wrap ``create_bundle`` so each bundle only gets the client's permitted toolsets.

    The returned coroutine enables the permitted toolsets before handing the
    bundle out, so its tools are registered before the client uses it. Raises
    PermissionDeniedError when every requested toolset failed to enable.
    """

    async def create(context: ClientRequestContext) -> ClientBundle:
        requested = await permission_resolver.resolve_permissions_async(context.client_id, context.headers)
        if context.client_id.startswith(ANONYMOUS_PREFIX):
            # Anonymous ids are single-use and never memoised
            permission_resolver.invalidate_cache(context.client_id)
        bundle = create_bundle(requested)

        if requested:
            result = await bundle.orchestrator.get_manager().enable_toolsets(requested)
            for r in result.results:
                if r.success:
                    bundle.allowed_toolsets.append(r.name)
                else:
                    bundle.failed_toolsets.append(r.name)
                    logger.warning(
                        f"Failed to enable toolset '{r.name}' for client '{context.client_id}': {r.message}"
                    )

            if not bundle.allowed_toolsets and bundle.failed_toolsets:
                # Denied clients hold no bundle, so their memo is dropped here
                permission_resolver.invalidate_cache(context.client_id)
                raise PermissionDeniedError(
                    f"All requested toolsets failed to enable for client '{context.client_id}'. "
                    f"Requested: [{', '.join(requested)}]. "
                    "Check that toolset names in permissions match the catalog.",
                    {"client_id": context.client_id, "requested": requested},
                )
        return bundle

    return create


class ClientBundleManager:
    """Hands out one bundle per client id, creating it on first use.

    Anonymous clients (no ``mcp-client-id`` header) get a one-off bundle that
    is never cached. Concurrent first requests for the same client share one
    bundle creation. ``on_release`` is called with the client id whenever a
    cached bundle is evicted, expired or cleared.
    """

    def __init__(
        self,
        create_bundle: BundleFactory,
        cache_config: ClientCacheConfig | None = None,
        on_release: Callable[[str], None] | None = None,
        log: logging.Logger | None = None,
    ) -> None:
        self._create_bundle = create_bundle
        self._on_release = on_release
        self._logger = log or logger
        self._pending: dict[str, asyncio.Future[ClientBundle]] = {}
        self.cache: ClientResourceCache[ClientBundle] = ClientResourceCache(
            cache_config, on_evict=self._release_bundle, log=self._logger
        )

    @staticmethod
    def resolve_client_id(headers: Mapping[str, str] | None) -> str:
        raw = None
        if headers:
            raw = headers.get(CLIENT_ID_HEADER)
            if raw is None:
                raw = next((v for k, v in headers.items() if k.lower() == CLIENT_ID_HEADER), None)
        client_id = raw.strip() if isinstance(raw, str) else ""
        return client_id or f"{ANONYMOUS_PREFIX}{uuid.uuid4()}"

    async def get_bundle(
        self, client_id: str | None = None, headers: Mapping[str, str] | None = None
    ) -> ClientBundle:
        client_id = client_id.strip() if client_id and client_id.strip() else self.resolve_client_id(headers)
        context = ClientRequestContext(client_id=client_id, headers=headers)

        if client_id.startswith(ANONYMOUS_PREFIX):
            return await self._create_bundle(context)

        cached = self.cache.get(client_id)
        if cached is not None:
            return cached

        pending = self._pending.get(client_id)
        if pending is None:
            pending = asyncio.ensure_future(self._create_and_cache(context))
            self._pending[client_id] = pending
        return await asyncio.shield(pending)

    def start(self) -> None:
        self.cache.start()

    def close(self) -> None:
        self.cache.stop(clear_entries=True)

    async def _create_and_cache(self, context: ClientRequestContext) -> ClientBundle:
        try:
            bundle = await self._create_bundle(context)
            self.cache.set(context.client_id, bundle)
            self._logger.info(
                f"Created bundle for client '{context.client_id}' "
                f"({len(self.cache)}/{self.cache.max_size} cached)"
            )
            return bundle
        finally:
            self._pending.pop(context.client_id, None)

    def _release_bundle(self, client_id: str, bundle: ClientBundle) -> None:
        self._logger.info(
            f"Released bundle for client '{client_id}' "
            f"(active toolsets: {', '.join(bundle.orchestrator.get_manager().get_active_toolsets()) or 'none'})"
        )
        if self._on_release is not None:
            self._on_release(client_id)
