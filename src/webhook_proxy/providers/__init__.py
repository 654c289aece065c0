"""Webhook providers and the registry that resolves them by kind."""

from webhook_proxy.exceptions import UnknownProviderError
from webhook_proxy.providers.base import Hook, Provider
from webhook_proxy.providers.github import GITHUB_PROVIDER_KIND, GithubProvider
from webhook_proxy.providers.gitlab import GITLAB_PROVIDER_KIND, GitlabProvider

PROVIDERS: dict[str, Provider] = {
    GITHUB_PROVIDER_KIND: GithubProvider(),
    GITLAB_PROVIDER_KIND: GitlabProvider(),
}


def get_provider(kind: str) -> Provider:
    """Resolve a provider by kind, raising UnknownProviderError if unregistered."""
    try:
        return PROVIDERS[kind.strip()]
    except KeyError:
        raise UnknownProviderError(f"Unknown provider kind: {kind!r}") from None


__all__ = [
    "GITHUB_PROVIDER_KIND",
    "GITLAB_PROVIDER_KIND",
    "GithubProvider",
    "GitlabProvider",
    "Hook",
    "PROVIDERS",
    "Provider",
    "get_provider",
]
