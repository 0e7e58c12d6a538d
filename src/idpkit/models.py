"""Base Pydantic models for idpkit.

This module provides the base model class that all public idpkit models inherit from.
It establishes consistent configuration across all models including:

- Strict field validation (no extra fields allowed)
- Immutable instances so adapters and configs can be shared between callers

Example:
    >>> from idpkit.models import IdpBaseModel
    >>>
    >>> class MyModel(IdpBaseModel):
    ...     name: str
    ...     count: int = 0
    >>>
    >>> MyModel(name="test").model_dump()
    {'name': 'test', 'count': 0}
"""

from pydantic import BaseModel, ConfigDict


class IdpBaseModel(BaseModel):
    """Base model for all idpkit Pydantic models.

    - extra="forbid": Rejects any fields not defined in the model
    - frozen=True: Makes instances immutable

    Wire-format models that must tolerate unknown vendor fields override
    ``model_config`` with ``extra="ignore"``.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)
