"""Tests for webhook providers and the provider registry."""

import dataclasses
import hashlib
import hmac

import pytest
from fastapi.datastructures import Headers

from webhook_proxy.exceptions import (
    MissingHeaderError,
    SecretMismatchError,
    UnknownProviderError,
)
from webhook_proxy.providers import GithubProvider, GitlabProvider, Hook, get_provider

SECRET = "test-secret-123"
PAYLOAD = b'{"action": "completed"}'


def _sign(payload: bytes, secret: str, digestmod=hashlib.sha256) -> str:
    return hmac.new(secret.encode("utf-8"), payload, digestmod).hexdigest()


# GitLab


def test_gitlab_extracts_and_validates_token():
    """Test that a matching token passes validation."""
    provider = GitlabProvider()
    hook = provider.extract_hook(
        {"X-Gitlab-Token": SECRET, "X-Gitlab-Event": "Push Hook"},
        PAYLOAD,
    )

    assert hook.payload == PAYLOAD
    assert hook.headers["x-gitlab-event"] == "Push Hook"
    provider.validate(hook, SECRET)


def test_gitlab_header_lookup_is_case_insensitive():
    """Test that header names match regardless of case."""
    provider = GitlabProvider()
    hook = provider.extract_hook(
        {"x-gitlab-token": SECRET, "X-GITLAB-EVENT": "Push Hook"},
        PAYLOAD,
    )

    assert hook.headers["X-Gitlab-Token"] == SECRET
    provider.validate(hook, SECRET)


def test_gitlab_rejects_token_differing_by_one_character():
    """Test that a token off by one character is rejected."""
    provider = GitlabProvider()
    hook = provider.extract_hook(
        {"X-Gitlab-Token": SECRET[:-1] + "4", "X-Gitlab-Event": "Push Hook"},
        PAYLOAD,
    )

    with pytest.raises(SecretMismatchError):
        provider.validate(hook, SECRET)


def test_gitlab_ignores_surrounding_whitespace():
    """Test that surrounding whitespace on the token is ignored."""
    provider = GitlabProvider()
    hook = provider.extract_hook(
        {"X-Gitlab-Token": f"  {SECRET} ", "X-Gitlab-Event": "Push Hook"},
        PAYLOAD,
    )

    provider.validate(hook, SECRET)


@pytest.mark.parametrize(
    "headers",
    [
        {"X-Gitlab-Token": "", "X-Gitlab-Event": "Push Hook"},
        {"X-Gitlab-Token": SECRET, "X-Gitlab-Event": ""},
        {"X-Gitlab-Token": "   ", "X-Gitlab-Event": "Push Hook"},
        {"X-Gitlab-Event": "Push Hook"},
        {"X-Wrong-Token": SECRET, "X-Wrong-Event": "Push Hook"},
        {},
    ],
)
def test_gitlab_rejects_missing_or_empty_headers(headers: dict[str, str]):
    """Test that absent and empty headers are both rejected."""
    with pytest.raises(MissingHeaderError):
        GitlabProvider().extract_hook(headers, PAYLOAD)


def test_gitlab_validate_rechecks_required_headers():
    """Test that validate does not trust a hook built without the event header."""
    hook = Hook(headers=Headers(headers={"X-Gitlab-Token": SECRET}), payload=PAYLOAD)

    with pytest.raises(MissingHeaderError):
        GitlabProvider().validate(hook, SECRET)


def test_gitlab_keeps_only_provider_headers():
    """Test that unrelated headers are not copied into the hook."""
    hook = GitlabProvider().extract_hook(
        {
            "X-Gitlab-Token": SECRET,
            "X-Gitlab-Event": "Push Hook",
            "X-Gitlab-Event-UUID": "abc-123",
            "Content-Type": "application/json",
            "Cookie": "session=1",
        },
        PAYLOAD,
    )

    assert hook.headers["x-gitlab-event-uuid"] == "abc-123"
    assert hook.headers["content-type"] == "application/json"
    assert "cookie" not in hook.headers


# GitHub


def test_github_validates_sha256_signature():
    """Test that a valid X-Hub-Signature-256 is accepted."""
    provider = GithubProvider()
    hook = provider.extract_hook(
        {
            "X-GitHub-Event": "push",
            "X-Hub-Signature-256": "sha256=" + _sign(PAYLOAD, SECRET),
            "X-GitHub-Delivery": "72d3162e",
        },
        PAYLOAD,
    )

    assert hook.headers["x-github-delivery"] == "72d3162e"
    provider.validate(hook, SECRET)


def test_github_falls_back_to_sha1_signature():
    """Test that the legacy X-Hub-Signature header is accepted on its own."""
    provider = GithubProvider()
    hook = provider.extract_hook(
        {
            "X-GitHub-Event": "push",
            "X-Hub-Signature": "sha1=" + _sign(PAYLOAD, SECRET, hashlib.sha1),
        },
        PAYLOAD,
    )

    provider.validate(hook, SECRET)


def test_github_prefers_sha256_when_both_present():
    """Test that only the SHA-256 signature is checked when both are sent."""
    provider = GithubProvider()
    hook = provider.extract_hook(
        {
            "X-GitHub-Event": "push",
            "X-Hub-Signature-256": "sha256=" + _sign(PAYLOAD, SECRET),
            "X-Hub-Signature": "sha1=" + "0" * 40,
        },
        PAYLOAD,
    )

    provider.validate(hook, SECRET)


def test_github_rejects_invalid_signature():
    """Test that invalid signatures are rejected."""
    provider = GithubProvider()
    hook = provider.extract_hook(
        {"X-GitHub-Event": "push", "X-Hub-Signature-256": "sha256=" + "a" * 64},
        PAYLOAD,
    )

    with pytest.raises(SecretMismatchError):
        provider.validate(hook, SECRET)


def test_github_rejects_wrong_prefix():
    """Test that signatures with the wrong prefix are rejected."""
    provider = GithubProvider()
    hook = provider.extract_hook(
        {"X-GitHub-Event": "push", "X-Hub-Signature-256": "sha1=" + _sign(PAYLOAD, SECRET)},
        PAYLOAD,
    )

    with pytest.raises(SecretMismatchError):
        provider.validate(hook, SECRET)


def test_github_rejects_different_payload():
    """Test that signatures for different payloads are rejected."""
    provider = GithubProvider()
    hook = provider.extract_hook(
        {"X-GitHub-Event": "push", "X-Hub-Signature-256": "sha256=" + _sign(PAYLOAD, SECRET)},
        b'{"action": "started"}',
    )

    with pytest.raises(SecretMismatchError):
        provider.validate(hook, SECRET)


def test_github_rejects_wrong_secret():
    """Test that a signature made with another secret is rejected."""
    provider = GithubProvider()
    hook = provider.extract_hook(
        {"X-GitHub-Event": "push", "X-Hub-Signature-256": "sha256=" + _sign(PAYLOAD, SECRET)},
        PAYLOAD,
    )

    with pytest.raises(SecretMismatchError):
        provider.validate(hook, "another-secret")


@pytest.mark.parametrize(
    "headers",
    [
        {"X-GitHub-Event": "push"},
        {"X-GitHub-Event": "push", "X-Hub-Signature-256": ""},
        {"X-Hub-Signature-256": "sha256=" + "a" * 64},
        {"X-GitHub-Event": "", "X-Hub-Signature-256": "sha256=" + "a" * 64},
        {"X-Gitlab-Token": SECRET, "X-Gitlab-Event": "Push Hook"},
    ],
)
def test_github_rejects_missing_or_empty_headers(headers: dict[str, str]):
    """Test that absent and empty GitHub headers are rejected."""
    with pytest.raises(MissingHeaderError):
        GithubProvider().extract_hook(headers, PAYLOAD)


# Hook and registry


def test_hook_is_immutable():
    """Test that a hook cannot be modified after creation."""
    hook = Hook(headers=Headers(headers={"X-Gitlab-Token": SECRET}), payload=PAYLOAD)

    with pytest.raises(dataclasses.FrozenInstanceError):
        hook.payload = b"tampered"  # type: ignore[misc]


def test_registry_resolves_known_providers():
    """Test that each registered kind resolves to its provider."""
    assert isinstance(get_provider("github"), GithubProvider)
    assert isinstance(get_provider("gitlab"), GitlabProvider)
    assert isinstance(get_provider(" gitlab "), GitlabProvider)


@pytest.mark.parametrize("kind", ["invalid", "", "GitHub"])
def test_registry_rejects_unknown_provider(kind: str):
    """Test that unregistered kinds raise UnknownProviderError."""
    with pytest.raises(UnknownProviderError):
        get_provider(kind)
