"""Provider capability and the Hook value object."""

import hmac
import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass

from fastapi.datastructures import Headers

from webhook_proxy.exceptions import MissingHeaderError

logger = logging.getLogger(__name__)

CONTENT_TYPE_HEADER = "Content-Type"
USER_AGENT_HEADER = "User-Agent"


@dataclass(frozen=True)
class Hook:
    """The provider-relevant headers and raw payload of one inbound webhook."""

    headers: Headers
    payload: bytes


def constant_time_equals(expected: str, supplied: str) -> bool:
    """Compare two strings in time independent of the first differing byte."""
    return hmac.compare_digest(expected.encode("utf-8"), supplied.encode("utf-8"))


class Provider(ABC):
    """
    One source-control platform's webhook conventions.

    Subclasses declare which headers they require and which they pass through,
    and implement the signing check in `validate`.
    """

    kind: str = ""
    required_headers: tuple[str, ...] = ()
    optional_headers: tuple[str, ...] = ()

    def extract_hook(self, headers: Mapping[str, str], payload: bytes) -> Hook:
        """
        Build a Hook from the raw request headers and body.

        Args:
            headers: The inbound request headers (case-insensitive mapping)
            payload: The raw request body bytes

        Returns:
            A Hook holding the required and present optional headers

        Raises:
            MissingHeaderError: If a required header is absent or empty
        """
        headers = Headers(headers=dict(headers.items()))
        collected: dict[str, str] = {}

        for name in self.required_headers:
            collected[name] = self._require(headers, name)
        collected.update(self.signature_headers(headers))

        for name in (CONTENT_TYPE_HEADER, USER_AGENT_HEADER, *self.optional_headers):
            value = headers.get(name)
            if value:
                collected[name] = value

        return Hook(headers=Headers(headers=collected), payload=payload)

    def check_required_headers(self, hook: Hook) -> None:
        """Confirm every required header is present on an already-built hook."""
        for name in self.required_headers:
            self._require(hook.headers, name)
        self.signature_headers(hook.headers)

    def signature_headers(self, headers: Headers) -> dict[str, str]:
        """Return required signing headers not listed in `required_headers`."""
        return {}

    @abstractmethod
    def validate(self, hook: Hook, secret: str) -> None:
        """
        Validate a hook against the shared secret.

        Raises:
            MissingHeaderError: If a required header is missing from the hook
            SecretMismatchError: If the token or signature does not match
        """

    def _require(self, headers: Mapping[str, str], name: str) -> str:
        value = headers.get(name)
        if value is None or not value.strip():
            logger.warning(f"Missing required {self.kind} header: {name}")
            raise MissingHeaderError(f"Missing required header {name}")
        return value
