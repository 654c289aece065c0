"""HTTP routes for webhook ingress."""

from fastapi import APIRouter, Request, Response

from webhook_proxy.proxy.gateway import Gateway

# Every method is routed to the gateway so it can reject the ones it does not forward
ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def build_webhook_router(gateway: Gateway) -> APIRouter:
    """Create the catch-all webhook router bound to a gateway."""
    router = APIRouter()

    @router.api_route("/{path:path}", methods=ALL_METHODS, include_in_schema=False)
    async def proxy_webhook(request: Request) -> Response:
        """Validate the webhook and relay it to the upstream."""
        return await gateway.handle_webhook(request)

    return router
