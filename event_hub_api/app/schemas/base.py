"""Shared base model for API schemas."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialised with camelCase field names.

    Fields may be populated by either their Python name or their alias,
    so services can build models with keyword arguments while clients
    send ``paymentStatus``-style keys.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )
