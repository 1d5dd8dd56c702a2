"""Pydantic models for the release metadata written to ``0/bundle.json``."""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ArchiveRef(BaseModel):
    name: str = Field(..., description="Archive the module was taken from.")
    version: str = Field(..., description="Version directory of that archive.")

    model_config = ConfigDict(extra="forbid")


class ModuleMeta(BaseModel):
    description: str = Field("Undocumented", description="Human readable module description.")
    archive: ArchiveRef
    depends: Optional[List[str]] = Field(None, description="Sorted module dependencies, absent when empty.")
    provides: Optional[List[str]] = Field(None, description="Sorted provided services, absent when empty.")
    ordinal: int = Field(..., ge=1, description="Directory number of the module's public assets.")
    optional: Optional[str] = Field(None, description="'y' when the module declares a runtime test.")
    datatypes: Optional[Dict[str, Dict[str, str]]] = Field(
        None, description="Flattened datatype definitions under the '_' key."
    )

    model_config = ConfigDict(extra="forbid")


class BundleMeta(BaseModel):
    modules: Dict[str, ModuleMeta] = Field(default_factory=dict, alias="_")

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    def to_json(self, *, indent: Optional[int] = None) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True, indent=indent)
