"""
Search Parameters Validation

This module defines the Pydantic model for search endpoint parameters.
"""

from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator

from .hybrid import HybridSearchConfig, MAX_BLEND


class SearchParams(BaseModel):
    """
    Pydantic model for search endpoint parameters.

    A caller either moves a single blend slider or supplies an explicit
    (vector_weight, text_weight) pair, never both.
    """
    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    query: str = Field("", description="Raw query text")
    limit: Optional[int] = Field(None, gt=0, description="Number of results to return")
    blend: Optional[float] = Field(None, ge=0, le=MAX_BLEND, description="Single slider value in [0, 2]")
    vector_weight: Optional[float] = Field(None, ge=0, description="Explicit vector channel weight")
    text_weight: Optional[float] = Field(None, ge=0, description="Explicit lexical channel weight")

    @model_validator(mode="after")
    def check_weight_source(self) -> "SearchParams":
        """Reject ambiguous weighting requests"""
        explicit = self.vector_weight is not None or self.text_weight is not None
        if self.blend is not None and explicit:
            raise ValueError("Provide either blend or vector_weight/text_weight, not both")
        return self

    def apply_to(self, config: HybridSearchConfig) -> HybridSearchConfig:
        """Return a copy of `config` with these parameters applied."""
        if self.limit is not None:
            config = config.with_limit(self.limit)
        if self.blend is not None:
            return config.with_blend(self.blend)
        if self.vector_weight is not None or self.text_weight is not None:
            return config.with_weights(
                self.vector_weight if self.vector_weight is not None else config.vector_weight,
                self.text_weight if self.text_weight is not None else config.text_weight,
            )
        return config
