"""Lark (Feishu) OAuth ProviderAdapter implementation.

Lark logins take three calls: an app access token is obtained with the client
credentials, the authorization code is exchanged for a user access token while
authenticating with that app token, and the user profile is read with the user
access token. Lark reports failures inside a JSON envelope (``code``/``msg``)
rather than through HTTP status codes alone.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping, Sequence
from typing import Any, TypeVar
from urllib.parse import urlencode, urlsplit

import httpx
from mcp.shared._httpx_utils import create_mcp_http_client
from pydantic import ConfigDict, Field, ValidationError, ValidationInfo, field_validator

from idpkit.models import IdpBaseModel

from ..contracts import (
    DecodeError,
    GrantResult,
    ProviderAdapter,
    TransportError,
    UpstreamError,
    UserInfo,
)
from ..models import LarkAuthConfigModel, LarkUserIdType

logger = logging.getLogger(__name__)

PROVIDER_NAME = "lark"

HttpClientFactory = Callable[[], httpx.AsyncClient]

_ResponseT = TypeVar("_ResponseT", bound="_LarkResponse")


class _LarkWireModel(IdpBaseModel):
    """Lark payload model: unknown fields are ignored and JSON null means the default."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    @field_validator("*", mode="before")
    @classmethod
    def _null_as_default(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None and info.field_name is not None:
            field = cls.model_fields[info.field_name]
            if not field.is_required():
                return field.get_default(call_default_factory=True)
        return value


class _LarkResponse(_LarkWireModel):
    """Envelope shared by every Lark open-apis response."""

    code: int
    msg: str = ""


class _LarkAppTokenResponse(_LarkResponse):
    expire: int = 0
    app_access_token: str = ""
    tenant_access_token: str = ""


class _LarkDataResponse(_LarkResponse):
    data: dict[str, Any] | None = None


class LarkAppAccessToken(IdpBaseModel):
    """App access token together with the authorization code it was issued for.

    The user-token endpoint needs the original code as well as the app token,
    so the code travels with the token to the next step.
    """

    app_access_token: str
    tenant_access_token: str = ""
    expires_in: int = 0
    expires_at: float
    code: str


class LarkUserAccessToken(_LarkWireModel):
    """``data`` of the user access token (and refresh) responses."""

    access_token: str = ""
    refresh_token: str = ""
    token_type: str = "Bearer"
    expires_in: int = 0
    refresh_expires_in: int = 0
    scope: str = ""
    issued_at: float = Field(default_factory=time.time)

    @property
    def expires_at(self) -> float | None:
        if not self.expires_in:
            return None
        return self.issued_at + self.expires_in

    @property
    def scopes(self) -> list[str]:
        return self.scope.split()


class LarkUserProfile(_LarkWireModel):
    """``data`` of the ``/authen/v1/user_info`` response."""

    name: str = ""
    en_name: str = ""
    avatar_url: str = ""
    avatar_thumb: str = ""
    avatar_middle: str = ""
    avatar_big: str = ""
    open_id: str = ""
    union_id: str = ""
    email: str = ""
    enterprise_email: str = ""
    user_id: str = ""
    mobile: str = ""
    tenant_key: str = ""
    employee_no: str = ""


def resolve_canonical_id(profile: LarkUserProfile, user_id_type: str | LarkUserIdType) -> str:
    """Pick the identifier selected by ``user_id_type``; empty if unrecognized."""
    selector = LarkUserIdType.resolve(user_id_type)
    if selector is LarkUserIdType.UNION_ID:
        return profile.union_id
    if selector is LarkUserIdType.OPEN_ID:
        return profile.open_id
    if selector is LarkUserIdType.USER_ID:
        return profile.user_id
    logger.warning(
        "Unrecognized Lark user_id_type; canonical user id will be empty",
        extra={"provider": PROVIDER_NAME, "user_id_type": str(user_id_type)},
    )
    return ""


def normalize_user_info(
    profile: LarkUserProfile,
    user_id_type: str | LarkUserIdType,
    *,
    scopes: Sequence[str] | None = None,
) -> UserInfo:
    """Map a Lark profile onto the common UserInfo shape."""
    user_id = resolve_canonical_id(profile, user_id_type)
    return UserInfo(
        provider=PROVIDER_NAME,
        user_id=user_id,
        username=f"{PROVIDER_NAME}-{user_id}",
        display_name=profile.name,
        email=profile.enterprise_email or profile.email,
        avatar_url=profile.avatar_url,
        extra={
            "larkUnionId": profile.union_id,
            "larkOpenId": profile.open_id,
            "larkUserId": profile.user_id,
        },
        raw_profile=profile.model_dump(),
        provider_scopes_granted=list(scopes) if scopes is not None else None,
    )


class LarkProviderAdapter(ProviderAdapter):
    """Lark OAuth ProviderAdapter that uses real HTTP calls.

    Holds only its configuration; every call opens and closes its own HTTP
    client, so a single instance can serve concurrent logins.
    """

    provider_name = PROVIDER_NAME

    def __init__(
        self,
        lark_config: LarkAuthConfigModel,
        *,
        http_client_factory: HttpClientFactory | None = None,
    ):
        self.config = lark_config
        self.client_id = lark_config.client_id
        self.client_secret = lark_config.client_secret
        self.redirect_url = lark_config.redirect_url
        self.user_id_type = lark_config.user_id_type
        self.scope = lark_config.scope
        self._http_client_factory = http_client_factory

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
        scope_str = " ".join(scopes) if scopes else self.scope
        params: list[tuple[str, str]] = [
            ("app_id", self.client_id),
            ("redirect_uri", redirect_uri),
            ("state", state),
        ]
        if scope_str:
            params.append(("scope", scope_str))
        if code_challenge:
            params.append(("code_challenge", code_challenge))
        if code_challenge_method:
            params.append(("code_challenge_method", code_challenge_method))
        if extra_params:
            params.extend(extra_params.items())
        return f"{self.config.auth_url}?{urlencode(params, doseq=True)}"

    # ── the login pipeline ───────────────────────────────────────────────────
    async def authenticate(self, code: str) -> UserInfo:
        """Turn an authorization code into normalized user info."""
        app_token = await self.exchange_code_for_app_token(code)
        user_token = await self.exchange_for_user_access_token(app_token)
        profile = await self.fetch_user_profile(user_token.access_token)
        return normalize_user_info(profile, self.user_id_type, scopes=user_token.scopes or None)

    async def exchange_code_for_app_token(self, code: str) -> LarkAppAccessToken:
        response = await self._request_app_token()
        return LarkAppAccessToken(
            app_access_token=response.app_access_token,
            tenant_access_token=response.tenant_access_token,
            expires_in=response.expire,
            expires_at=time.time() + response.expire,
            code=code,
        )

    async def exchange_for_user_access_token(
        self, app_token: LarkAppAccessToken
    ) -> LarkUserAccessToken:
        response = await self._call(
            "POST",
            self.config.user_token_url,
            endpoint="user_access_token",
            response_model=_LarkDataResponse,
            bearer=app_token.app_access_token,
            body={"grant_type": "authorization_code", "code": app_token.code},
        )
        return self._parse_user_token(response, endpoint="user_access_token")

    async def fetch_user_profile(self, access_token: str) -> LarkUserProfile:
        response = await self._call(
            "GET",
            self.config.user_info_url,
            endpoint="user_info",
            response_model=_LarkDataResponse,
            bearer=access_token,
        )
        return self._parse_data(response, LarkUserProfile, endpoint="user_info")

    def normalize(self, profile: LarkUserProfile) -> UserInfo:
        return normalize_user_info(profile, self.user_id_type)

    # ── ProviderAdapter protocol ─────────────────────────────────────────────
    async def exchange_code(
        self,
        *,
        code: str,
        redirect_uri: str,
        code_verifier: str | None = None,
        scopes: Sequence[str] | None = None,
    ) -> GrantResult:
        # Lark binds the redirect URI when the code is issued; the token call takes only the code.
        if code_verifier:
            logger.debug(
                "Lark OIDC token endpoint does not verify PKCE; code_verifier not sent",
                extra={"provider": self.provider_name, "endpoint": "user_access_token"},
            )
        app_token = await self.exchange_code_for_app_token(code)
        user_token = await self.exchange_for_user_access_token(app_token)
        profile = await self.fetch_user_profile(user_token.access_token)

        return GrantResult(
            access_token=user_token.access_token,
            refresh_token=user_token.refresh_token or None,
            expires_at=user_token.expires_at,
            provider_scopes_granted=user_token.scopes or list(scopes or []),
            raw_profile=profile.model_dump(),
            token_type=user_token.token_type or "Bearer",
        )

    async def refresh_token(
        self, *, refresh_token: str, scopes: Sequence[str] | None = None
    ) -> GrantResult:
        app_token = await self._request_app_token()
        response = await self._call(
            "POST",
            self.config.refresh_url,
            endpoint="refresh_access_token",
            response_model=_LarkDataResponse,
            bearer=app_token.app_access_token,
            body={"grant_type": "refresh_token", "refresh_token": refresh_token},
        )
        user_token = self._parse_user_token(response, endpoint="refresh_access_token")

        return GrantResult(
            access_token=user_token.access_token,
            refresh_token=user_token.refresh_token or refresh_token,
            expires_at=user_token.expires_at,
            provider_scopes_granted=user_token.scopes or list(scopes or []),
            raw_profile=None,
            token_type=user_token.token_type or "Bearer",
        )

    async def fetch_user_info(self, *, access_token: str) -> UserInfo:
        profile = await self.fetch_user_profile(access_token)
        return self.normalize(profile)

    async def revoke_token(self, *, token: str, token_type_hint: str | None = None) -> bool:
        # Lark has no token revocation endpoint; tokens simply expire.
        logger.debug(
            "Lark does not support token revocation",
            extra={"provider": self.provider_name, "endpoint": "revoke"},
        )
        return False

    # ── helpers ──────────────────────────────────────────────────────────────
    @property
    def callback_path(self) -> str:
        return urlsplit(self.redirect_url).path or "/"

    async def _request_app_token(self) -> _LarkAppTokenResponse:
        response = await self._call(
            "POST",
            self.config.app_token_url,
            endpoint="app_access_token",
            response_model=_LarkAppTokenResponse,
            body={"app_id": self.client_id, "app_secret": self.client_secret},
        )
        if not response.app_access_token:
            raise DecodeError(
                "Lark app token response had no app_access_token", endpoint="app_access_token"
            )
        return response

    def _parse_user_token(self, response: _LarkDataResponse, *, endpoint: str) -> LarkUserAccessToken:
        token = self._parse_data(response, LarkUserAccessToken, endpoint=endpoint)
        if not token.access_token:
            raise DecodeError(f"Lark {endpoint} response had no access_token", endpoint=endpoint)
        return token

    def _parse_data(
        self, response: _LarkDataResponse, model: type[IdpBaseModel], *, endpoint: str
    ) -> Any:
        if response.data is None:
            raise DecodeError(f"Lark {endpoint} response had no data", endpoint=endpoint)
        try:
            return model.model_validate(response.data)
        except ValidationError as exc:
            raise DecodeError(f"Lark {endpoint} data was invalid", endpoint=endpoint) from exc

    async def _call(
        self,
        method: str,
        url: str,
        *,
        endpoint: str,
        response_model: type[_ResponseT],
        bearer: str | None = None,
        body: Mapping[str, str] | None = None,
    ) -> _ResponseT:
        headers = {"Content-Type": "application/json; charset=utf-8"}
        if bearer:
            headers["Authorization"] = f"Bearer {bearer}"

        factory = self._http_client_factory or create_mcp_http_client
        try:
            async with factory() as client:
                if method == "GET":
                    resp = await client.get(url, headers=headers)
                else:
                    resp = await client.post(url, headers=headers, json=dict(body or {}))
        except httpx.HTTPError as exc:
            logger.warning(
                "Lark endpoint could not be reached",
                extra={"provider": self.provider_name, "endpoint": endpoint, "error": str(exc)},
            )
            raise TransportError(
                f"Lark {endpoint} request failed: {exc}", endpoint=endpoint
            ) from exc

        return self._parse_response(resp, response_model, endpoint=endpoint)

    def _parse_response(
        self, resp: Any, response_model: type[_ResponseT], *, endpoint: str
    ) -> _ResponseT:
        try:
            payload = resp.json()
        except ValueError as exc:
            logger.warning(
                "Lark endpoint returned invalid JSON",
                extra={
                    "provider": self.provider_name,
                    "endpoint": endpoint,
                    "status_code": resp.status_code,
                },
            )
            raise DecodeError(
                f"Lark {endpoint} response was not valid JSON", endpoint=endpoint
            ) from exc

        if not isinstance(payload, dict):
            logger.warning(
                "Lark endpoint returned non-object JSON",
                extra={
                    "provider": self.provider_name,
                    "endpoint": endpoint,
                    "status_code": resp.status_code,
                },
            )
            raise DecodeError(f"Lark {endpoint} response was not a JSON object", endpoint=endpoint)

        try:
            parsed = response_model.model_validate(payload)
        except ValidationError as exc:
            raise DecodeError(f"Lark {endpoint} response was invalid", endpoint=endpoint) from exc

        if parsed.code != 0 or resp.status_code >= 400:
            logger.warning(
                "Lark endpoint reported an error",
                extra={
                    "provider": self.provider_name,
                    "endpoint": endpoint,
                    "status_code": resp.status_code,
                    "provider_error": parsed.code,
                },
            )
            raise UpstreamError(
                parsed.code,
                parsed.msg or f"HTTP {resp.status_code}",
                endpoint=endpoint,
                status_code=resp.status_code if resp.status_code >= 400 else 400,
            )

        logger.debug(
            "Lark endpoint call succeeded",
            extra={"provider": self.provider_name, "endpoint": endpoint},
        )
        return parsed
