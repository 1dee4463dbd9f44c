from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class CatalogEntry(BaseModel):
    """A structured catalog item (spell, bardic inspiration, mockery)."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    title: str = Field(alias="t")
    subtitle: Optional[str] = Field(default=None, alias="s")
    attribution: Optional[str] = Field(default=None, alias="a")

    def fields(self) -> list[str]:
        """Present searchable fields in match order."""
        return [
            value
            for value in (self.title, self.subtitle, self.attribution)
            if value
        ]


Entry = Union[CatalogEntry, str]


class Query(BaseModel):
    """Snapshot of the search input for one query epoch."""

    model_config = ConfigDict(frozen=True)

    text: str = ""
    fuzzy_enabled: bool = True

    @property
    def is_active(self) -> bool:
        return bool(self.text)


class FuzzyConfig(BaseModel):
    """Tuning for approximate matching."""

    model_config = ConfigDict(frozen=True)

    threshold: int = Field(default=2, ge=0)


class SaveResponse(BaseModel):
    success: bool = True
    message: str = "Data saved successfully"
    timestamp: str


class LoadResponse(BaseModel):
    success: bool = True
    data: dict[str, Any]
    timestamp: Optional[str] = None


class NotFoundResponse(BaseModel):
    success: bool = False
    message: str = "No saved data found"


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
