"""
Base Pydantic schemas.

This module contains base schemas with common configuration
that other schemas can inherit from.
"""

from pydantic import BaseModel, ConfigDict


class BaseSchema(BaseModel):
    """
    Base schema with common configuration.

    All other schemas should inherit from this class.
    """

    model_config = ConfigDict(from_attributes=True)


class FrozenSchema(BaseSchema):
    """
    Immutable schema for values shared across concurrent message handlers.
    """

    model_config = ConfigDict(from_attributes=True, frozen=True)
