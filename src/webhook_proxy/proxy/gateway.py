"""Gateway: validates inbound webhooks and relays them to the upstream."""

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from urllib.parse import quote

import httpx
from fastapi import Request, Response
from fastapi.responses import JSONResponse

from webhook_proxy.config import Settings
from webhook_proxy.exceptions import (
    GatewayError,
    InvalidConfigurationError,
    InvalidUpstreamTargetError,
    MethodNotAllowedError,
    PathNotAllowedError,
    UpstreamUnreachableError,
)
from webhook_proxy.providers import Hook, get_provider
from webhook_proxy.proxy.paths import is_path_allowed

logger = logging.getLogger(__name__)

DEFAULT_FORWARD_METHOD = "POST"
DEFAULT_TIMEOUT_SECONDS = 30.0

# Headers describing the upstream connection rather than the response itself.
# The body is relayed decoded, so its original length and encoding no longer apply.
_EXCLUDED_RESPONSE_HEADERS = frozenset(
    {
        "connection",
        "keep-alive",
        "proxy-authenticate",
        "proxy-authorization",
        "te",
        "trailer",
        "transfer-encoding",
        "upgrade",
        "content-length",
        "content-encoding",
    }
)


@dataclass(frozen=True)
class GatewayConfig:
    """Validated, immutable gateway configuration."""

    upstream_url: str
    allowed_paths: tuple[str, ...] | None
    secret: str
    provider_kind: str
    forward_method: str = DEFAULT_FORWARD_METHOD
    timeout: float = DEFAULT_TIMEOUT_SECONDS

    def __post_init__(self) -> None:
        if not self.upstream_url or not self.upstream_url.strip():
            raise InvalidConfigurationError("upstream URL cannot be empty")
        if self.allowed_paths is None:
            raise InvalidConfigurationError(
                "allowed paths must be set; use an empty list to allow all paths"
            )
        if not self.provider_kind or not self.provider_kind.strip():
            raise InvalidConfigurationError("provider cannot be empty")
        if not self.secret or not self.secret.strip():
            raise InvalidConfigurationError("secret cannot be empty")
        if not self.forward_method:
            raise InvalidConfigurationError("forward method cannot be empty")
        if self.timeout <= 0:
            raise InvalidConfigurationError("timeout must be positive")

        object.__setattr__(self, "allowed_paths", tuple(self.allowed_paths))
        object.__setattr__(self, "forward_method", self.forward_method.upper())


class Gateway:
    """
    Validates webhooks for one provider and forwards them to one upstream.

    The gateway holds no mutable state, so a single instance serves all
    concurrent requests.
    """

    def __init__(
        self,
        upstream_url: str,
        allowed_paths: Sequence[str] | None,
        provider_kind: str,
        secret: str,
        *,
        forward_method: str = DEFAULT_FORWARD_METHOD,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = GatewayConfig(
            upstream_url=upstream_url,
            allowed_paths=None if allowed_paths is None else tuple(allowed_paths),
            secret=secret,
            provider_kind=provider_kind,
            forward_method=forward_method,
            timeout=timeout,
        )
        self._transport = transport

    @classmethod
    def from_settings(
        cls, settings: Settings, transport: httpx.AsyncBaseTransport | None = None
    ) -> "Gateway":
        """Build a gateway from application settings."""
        return cls(
            upstream_url=settings.upstream_url,
            allowed_paths=settings.allowed_paths,
            provider_kind=settings.provider,
            secret=settings.webhook_secret,
            timeout=settings.upstream_timeout,
            transport=transport,
        )

    async def handle_webhook(self, request: Request) -> Response:
        """
        Validate an inbound webhook and relay it upstream.

        Every failure is mapped to a status code with a generic body; the
        process keeps serving after any of them.
        """
        try:
            return await self._handle(request)
        except GatewayError as e:
            if e.status_code >= 500:
                logger.error(f"Failed to proxy {request.method} {request.scope['path']}: {e}")
            else:
                logger.warning(f"Rejected {request.method} {request.scope['path']}: {e}")

            headers = None
            if isinstance(e, MethodNotAllowedError):
                headers = {"Allow": e.allowed}
            return JSONResponse(
                status_code=e.status_code,
                content={"detail": e.detail},
                headers=headers,
            )

    async def _handle(self, request: Request) -> Response:
        config = self.config

        if request.method.upper() != config.forward_method:
            raise MethodNotAllowedError(
                f"Method {request.method} not allowed", allowed=config.forward_method
            )

        provider = get_provider(config.provider_kind)
        self.build_target_url("")

        payload = await request.body()
        hook = provider.extract_hook(request.headers, payload)
        provider.validate(hook, config.secret)

        # Starlette rebuilds request.url from the decoded path, which re-splits escaped "?" and "#"
        path = request.scope["path"]
        if not is_path_allowed(config.allowed_paths, path):
            raise PathNotAllowedError(f"Path not allowed: {path}")

        upstream_response = await self.relay(hook, _raw_path(request), _query_string(request))
        return self._build_response(upstream_response)

    def build_target_url(self, path: str, query: str = "") -> httpx.URL:
        """
        Join the upstream URL with a percent-encoded request path and query.

        Raises:
            InvalidUpstreamTargetError: If the result is not an absolute http(s) URL
        """
        base = self.config.upstream_url.strip()
        if "://" not in base:
            base = "http://" + base

        raw_url = base.rstrip("/") + path
        if query:
            raw_url += "?" + query

        try:
            url = httpx.URL(raw_url)
        except httpx.InvalidURL as e:
            raise InvalidUpstreamTargetError(f"Invalid upstream URL {raw_url!r}: {e}") from e

        if url.scheme not in ("http", "https"):
            raise InvalidUpstreamTargetError(f"Unsupported upstream URL scheme: {url.scheme!r}")
        if not url.host:
            raise InvalidUpstreamTargetError(f"Upstream URL has no host: {raw_url!r}")

        return url

    async def relay(self, hook: Hook, path: str, query: str = "") -> httpx.Response:
        """
        Forward a validated hook to the upstream and return its response.

        Args:
            hook: The validated hook to forward
            path: The percent-encoded request path to append to the upstream URL
            query: The raw query string, forwarded unchanged

        Returns:
            The upstream's response, body fully read

        Raises:
            InvalidUpstreamTargetError: If the upstream URL is unusable
            UpstreamUnreachableError: If the upstream cannot be contacted
        """
        url = self.build_target_url(path, query)

        logger.info(f"Forwarding {self.config.forward_method} to {url.host}{url.path}")

        async with httpx.AsyncClient(
            transport=self._transport,
            timeout=httpx.Timeout(self.config.timeout),
            follow_redirects=False,
        ) as client:
            try:
                async with asyncio.timeout(self.config.timeout):
                    response = await client.request(
                        self.config.forward_method,
                        url,
                        content=hook.payload,
                        headers=list(hook.headers.items()),
                    )
            except httpx.UnsupportedProtocol as e:
                raise InvalidUpstreamTargetError(f"Unsupported upstream URL: {e}") from e
            except httpx.RequestError as e:
                raise UpstreamUnreachableError(f"Upstream unreachable: {e!r}") from e
            except TimeoutError as e:
                raise UpstreamUnreachableError(
                    f"Upstream did not respond within {self.config.timeout}s"
                ) from e

        logger.info(f"Upstream responded {response.status_code} for {url.path}")
        return response

    @staticmethod
    def _build_response(upstream: httpx.Response) -> Response:
        response = Response(content=upstream.content, status_code=upstream.status_code)
        for name, value in upstream.headers.multi_items():
            if name.lower() not in _EXCLUDED_RESPONSE_HEADERS:
                response.headers.append(name, value)
        return response


def _raw_path(request: Request) -> str:
    """Return the request path as sent by the client, escapes intact."""
    raw_path = request.scope.get("raw_path")
    if raw_path:
        return raw_path.decode("latin-1")
    return quote(request.scope["path"], safe="/")


def _query_string(request: Request) -> str:
    return request.scope.get("query_string", b"").decode("latin-1")
