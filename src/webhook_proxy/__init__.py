"""Webhook proxy: validates provider webhooks and relays them upstream."""

__version__ = "0.1.0"
