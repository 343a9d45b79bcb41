"""Base model configuration for run inputs and page payloads."""

from pydantic import BaseModel, ConfigDict


class Model(BaseModel):
    """Base model with frozen, alias-friendly configuration."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)
