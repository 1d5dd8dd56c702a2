"""Pydantic model for values a bundle script assigns to its accumulator."""

from __future__ import annotations

from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field, field_validator


class BundleDeclaration(BaseModel):
    versions: Dict[str, str] = Field(default_factory=dict, description="External archive name to version constraint.")
    includes: List[str] = Field(default_factory=lambda: [""], description="Module name prefixes to bundle.")
    excludes: List[str] = Field(default_factory=list, description="Module name prefixes to leave out.")

    model_config = ConfigDict(extra="allow", arbitrary_types_allowed=True)

    @field_validator("versions", mode="before")
    @classmethod
    def _stringify_constraints(cls, value: Any) -> Any:
        if value is None:
            return {}
        if isinstance(value, dict):
            return {
                key: str(item) if isinstance(item, (int, float)) and not isinstance(item, bool) else item
                for key, item in value.items()
            }
        return value

    @field_validator("includes", "excludes", mode="before")
    @classmethod
    def _default_lists(cls, value: Any, info: Any) -> Any:
        if value is None:
            return [""] if info.field_name == "includes" else []
        return value
