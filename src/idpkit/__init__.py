"""idpkit - identity-provider adapters with a shared, normalized user-info contract."""

__version__ = "0.1.0"
