"""OAuth provider implementations.

This module contains concrete implementations of provider adapters.
"""

from .lark import (
    LarkAppAccessToken,
    LarkProviderAdapter,
    LarkUserAccessToken,
    LarkUserProfile,
    normalize_user_info,
)

__all__ = [
    "LarkAppAccessToken",
    "LarkProviderAdapter",
    "LarkUserAccessToken",
    "LarkUserProfile",
    "normalize_user_info",
]
