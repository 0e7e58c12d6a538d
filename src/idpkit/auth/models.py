"""Pydantic models for provider configuration.

## Security-relevant configuration fields

- **redirect_url**: affects redirect binding and open-redirect risk.
- **scope**: affects what permissions are requested from the upstream IdP.
- **user_id_type**: decides which vendor identifier becomes the canonical user id,
  and therefore which local account a login maps to.

Treat changes to these fields as security-sensitive and ensure they are covered by
tests and documented behavior.
"""

from __future__ import annotations

from enum import Enum

from idpkit.models import IdpBaseModel

LARK_AUTH_URL = "https://open.feishu.cn/open-apis/authen/v1/authorize"
LARK_APP_TOKEN_URL = "https://open.feishu.cn/open-apis/auth/v3/app_access_token/internal"
LARK_USER_TOKEN_URL = "https://open.feishu.cn/open-apis/authen/v1/oidc/access_token"
LARK_REFRESH_URL = "https://open.feishu.cn/open-apis/authen/v1/oidc/refresh_access_token"
LARK_USER_INFO_URL = "https://open.feishu.cn/open-apis/authen/v1/user_info"


class LarkUserIdType(str, Enum):
    """Which Lark identifier is used as the canonical user id."""

    UNION_ID = "union_id"
    OPEN_ID = "open_id"
    USER_ID = "user_id"

    @classmethod
    def resolve(cls, value: str | LarkUserIdType) -> LarkUserIdType | None:
        """Return the matching member, or None for an unrecognized selector."""
        try:
            return cls(value)
        except ValueError:
            return None


class LarkAuthConfigModel(IdpBaseModel):
    """Lark (Feishu) OAuth provider configuration.

    ``user_id_type`` is kept as a plain string: an unrecognized value is accepted
    and produces an empty canonical id instead of failing at load time.
    """

    client_id: str
    client_secret: str
    redirect_url: str
    user_id_type: str
    scope: str | None = None
    auth_url: str = LARK_AUTH_URL
    app_token_url: str = LARK_APP_TOKEN_URL
    user_token_url: str = LARK_USER_TOKEN_URL
    refresh_url: str = LARK_REFRESH_URL
    user_info_url: str = LARK_USER_INFO_URL


class IdpConfigModel(IdpBaseModel):
    """Top-level idpkit configuration file."""

    lark: LarkAuthConfigModel | None = None
