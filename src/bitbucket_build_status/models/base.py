"""Base model for the build status step."""

from pydantic import BaseModel, ConfigDict


class FrozenModel(BaseModel):
    """Immutable pydantic model; values are validated once at construction."""

    model_config = ConfigDict(frozen=True, extra="forbid")
