"""Reusable, strict base models for the specification."""

from pydantic import BaseModel, ConfigDict


class StrictBaseModel(BaseModel):
    """
    A strict, immutable pydantic base model.

    Instances are frozen (and therefore hashable when every field is), reject
    unknown fields, and never coerce values between types.
    """

    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        strict=True,
        validate_default=True,
    )
