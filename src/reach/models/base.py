"""Base Pydantic model configuration for agent-reach models.

Stored records (registry entries, challenges, sessions) inherit from
ReachBaseModel:
- Immutability (frozen=True) so a record read from a store cannot be
  mutated behind the store's lock
- Strict validation (extra="forbid") to catch typos and invalid fields
- Flexible field naming (populate_by_name=True) for alias support

Request bodies inherit from ReachRequestModel instead, which ignores
unknown fields so older and newer clients keep working.
"""

from pydantic import BaseModel, ConfigDict


class ReachBaseModel(BaseModel):
    """Base model for all stored agent-reach entities.

    Example:
        >>> from pydantic import Field
        >>> class MyModel(ReachBaseModel):
        ...     name: str
        ...     count: int = Field(default=0, ge=0)
        >>>
        >>> obj = MyModel(name="test", count=5)
        >>> obj.name
        'test'
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        populate_by_name=True,
        use_enum_values=False,
        validate_default=True,
    )


class ReachRequestModel(BaseModel):
    """Base model for inbound request bodies: extra fields are ignored."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )
