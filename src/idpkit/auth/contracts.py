"""Contracts and shared types for idpkit provider adapters."""

from __future__ import annotations

from typing import Any, Mapping, Protocol, Sequence, runtime_checkable

from pydantic import Field

from idpkit.models import IdpBaseModel


class ProviderError(Exception):
    """Standardized provider error with HTTP-style status information."""

    def __init__(self, error: str, description: str | None = None, status_code: int = 400):
        super().__init__(description or error)
        self.error = error
        self.description = description
        self.status_code = status_code


class TransportError(ProviderError):
    """The provider could not be reached (connection, TLS or protocol failure)."""

    def __init__(self, description: str, *, endpoint: str):
        super().__init__("temporarily_unavailable", description, status_code=502)
        self.endpoint = endpoint


class DecodeError(ProviderError):
    """The provider answered with a body that is not the expected JSON document."""

    def __init__(self, description: str, *, endpoint: str, status_code: int = 502):
        super().__init__("invalid_response", description, status_code=status_code)
        self.endpoint = endpoint


class UpstreamError(ProviderError):
    """The provider reported a failure inside its JSON envelope.

    ``upstream_code`` and ``upstream_message`` are the vendor's own code and
    message; the message is the only diagnostic detail available.
    """

    def __init__(
        self,
        upstream_code: int,
        upstream_message: str,
        *,
        endpoint: str,
        status_code: int = 400,
    ):
        super().__init__(
            "upstream_error",
            f"{endpoint} failed with code {upstream_code}: {upstream_message}",
            status_code=status_code,
        )
        self.upstream_code = upstream_code
        self.upstream_message = upstream_message
        self.endpoint = endpoint


class GrantResult(IdpBaseModel):
    """Result of exchanging or refreshing a grant with an IdP."""

    access_token: str
    refresh_token: str | None = None
    expires_at: float | None = None
    provider_scopes_granted: list[str] | None = None
    raw_profile: dict[str, Any] | None = None
    token_type: str = "Bearer"


class UserInfo(IdpBaseModel):
    """Normalized user information returned by providers.

    ``username`` is always ``"<provider>-<user_id>"``. ``user_id`` may be empty
    when the provider is configured with an unrecognized id selector, so
    callers must tolerate a username of ``"<provider>-"``.
    """

    provider: str
    user_id: str
    username: str
    display_name: str = ""
    email: str = ""
    avatar_url: str = ""
    extra: dict[str, str] = Field(default_factory=dict)
    raw_profile: dict[str, Any] | None = None
    provider_scopes_granted: list[str] | None = None


@runtime_checkable
class ProviderAdapter(Protocol):
    """Interface all provider adapters must implement."""

    provider_name: str

    def build_authorize_url(
        self,
        *,
        redirect_uri: str,
        state: str,
        scopes: Sequence[str],
        code_challenge: str | None = None,
        code_challenge_method: str | None = None,
        extra_params: Mapping[str, str] | None = None,
    ) -> str:
        """Construct the provider authorize URL."""

    async def exchange_code(
        self,
        *,
        code: str,
        redirect_uri: str,
        code_verifier: str | None = None,
        scopes: Sequence[str] | None = None,
    ) -> GrantResult:
        """Exchange an authorization code for provider tokens."""

    async def refresh_token(
        self, *, refresh_token: str, scopes: Sequence[str] | None = None
    ) -> GrantResult:
        """Refresh provider tokens."""

    async def fetch_user_info(self, *, access_token: str) -> UserInfo:
        """Fetch user information associated with a provider access token."""

    async def revoke_token(self, *, token: str, token_type_hint: str | None = None) -> bool:
        """Revoke a provider token if supported."""

    async def authenticate(self, code: str) -> UserInfo:
        """Run the whole code-to-user-info flow."""


__all__ = [
    "DecodeError",
    "GrantResult",
    "ProviderAdapter",
    "ProviderError",
    "TransportError",
    "UpstreamError",
    "UserInfo",
]
