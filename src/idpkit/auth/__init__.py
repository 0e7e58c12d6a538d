"""idpkit authentication - provider adapters and the normalized user-info contract.

## Key Components

### Contracts
- `ProviderAdapter`: Protocol every provider adapter implements
- `UserInfo`, `GrantResult`: Normalized results shared by all providers
- `ProviderError` and its subclasses `TransportError`, `DecodeError`, `UpstreamError`

### Providers
- `LarkProviderAdapter`: Lark / Feishu login (app token, user token, user info)

## Quick Example

```python
from idpkit.auth import LarkAuthConfigModel, LarkProviderAdapter

adapter = LarkProviderAdapter(
    LarkAuthConfigModel(
        client_id="cli_xxx",
        client_secret="secret",
        redirect_url="https://example.com/lark/callback",
        user_id_type="open_id",
    )
)
user = await adapter.authenticate(code)
print(user.username)  # "lark-ou_..."
```
"""

from .contracts import (
    DecodeError,
    GrantResult,
    ProviderAdapter,
    ProviderError,
    TransportError,
    UpstreamError,
    UserInfo,
)
from .models import IdpConfigModel, LarkAuthConfigModel, LarkUserIdType
from .providers import LarkProviderAdapter

__all__ = [
    # Config
    "IdpConfigModel",
    "LarkAuthConfigModel",
    "LarkUserIdType",
    # Contracts
    "GrantResult",
    "ProviderAdapter",
    "UserInfo",
    # Errors
    "DecodeError",
    "ProviderError",
    "TransportError",
    "UpstreamError",
    # Providers
    "LarkProviderAdapter",
]
