"""GitHub webhook provider: HMAC signatures over the raw payload."""

import hashlib
import hmac
import logging

from fastapi.datastructures import Headers

from webhook_proxy.exceptions import MissingHeaderError, SecretMismatchError
from webhook_proxy.providers.base import Hook, Provider

logger = logging.getLogger(__name__)

GITHUB_PROVIDER_KIND = "github"

X_GITHUB_EVENT = "X-GitHub-Event"
X_GITHUB_DELIVERY = "X-GitHub-Delivery"
X_HUB_SIGNATURE_256 = "X-Hub-Signature-256"
X_HUB_SIGNATURE = "X-Hub-Signature"

# Preferred scheme first
SIGNATURE_SCHEMES = (
    (X_HUB_SIGNATURE_256, "sha256=", hashlib.sha256),
    (X_HUB_SIGNATURE, "sha1=", hashlib.sha1),
)


def sign_payload(payload: bytes, secret: str, digestmod=hashlib.sha256) -> str:
    """Compute the hex HMAC digest GitHub sends for a payload."""
    return hmac.new(secret.encode("utf-8"), payload, digestmod).hexdigest()


class GithubProvider(Provider):
    """Validates `X-Hub-Signature-256` (or legacy `X-Hub-Signature`) digests."""

    kind = GITHUB_PROVIDER_KIND
    required_headers = (X_GITHUB_EVENT,)
    optional_headers = (
        X_GITHUB_DELIVERY,
        "X-GitHub-Hook-ID",
        "X-GitHub-Hook-Installation-Target-ID",
        "X-GitHub-Hook-Installation-Target-Type",
    )

    def signature_headers(self, headers: Headers) -> dict[str, str]:
        """Pick the signature header to check, preferring SHA-256 over SHA-1."""
        for name, _prefix, _digestmod in SIGNATURE_SCHEMES:
            value = headers.get(name)
            if value and value.strip():
                return {name: value}

        logger.warning("Missing webhook signature")
        raise MissingHeaderError(f"Missing required header {X_HUB_SIGNATURE_256}")

    def validate(self, hook: Hook, secret: str) -> None:
        self.check_required_headers(hook)
        [(header, signature)] = self.signature_headers(hook.headers).items()
        prefix, digestmod = next(
            (prefix, digestmod) for name, prefix, digestmod in SIGNATURE_SCHEMES if name == header
        )

        signature = signature.strip()
        if not signature.startswith(prefix):
            logger.warning(f"Invalid signature format - expected {prefix} prefix")
            raise SecretMismatchError(f"Invalid {header} format")

        expected = prefix + sign_payload(hook.payload, secret, digestmod)
        if not hmac.compare_digest(expected.encode("utf-8"), signature.encode("utf-8")):
            logger.warning("Webhook signature validation failed")
            raise SecretMismatchError("Webhook signature mismatch")
