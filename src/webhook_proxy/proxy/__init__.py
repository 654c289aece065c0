"""Webhook validation, path allow-listing and upstream relay."""

from webhook_proxy.proxy.gateway import Gateway, GatewayConfig
from webhook_proxy.proxy.paths import is_path_allowed
from webhook_proxy.proxy.router import build_webhook_router

__all__ = ["Gateway", "GatewayConfig", "build_webhook_router", "is_path_allowed"]
