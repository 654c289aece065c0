"""GitLab webhook provider: shared token sent verbatim in a header."""

import logging

from webhook_proxy.exceptions import SecretMismatchError
from webhook_proxy.providers.base import Hook, Provider, constant_time_equals

logger = logging.getLogger(__name__)

GITLAB_PROVIDER_KIND = "gitlab"

X_GITLAB_TOKEN = "X-Gitlab-Token"
X_GITLAB_EVENT = "X-Gitlab-Event"


class GitlabProvider(Provider):
    """Compares `X-Gitlab-Token` against the secret in constant time."""

    kind = GITLAB_PROVIDER_KIND
    required_headers = (X_GITLAB_TOKEN, X_GITLAB_EVENT)
    optional_headers = (
        "X-Gitlab-Event-UUID",
        "X-Gitlab-Instance",
        "X-Gitlab-Webhook-UUID",
    )

    def validate(self, hook: Hook, secret: str) -> None:
        self.check_required_headers(hook)

        token = hook.headers[X_GITLAB_TOKEN].strip()
        if not constant_time_equals(secret.strip(), token):
            logger.warning("Webhook token validation failed")
            raise SecretMismatchError("Webhook token mismatch")
