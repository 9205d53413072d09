"""Pydantic models for the git tree listing and the paint item files."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class ScunpackedBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class TreeEntry(ScunpackedBaseModel):
    path: str
    type: str
    url: str | None = None


class TreeResponse(ScunpackedBaseModel):
    tree: list[TreeEntry] = Field(default_factory=list["TreeEntry"])
    truncated: bool = False


class StdItem(ScunpackedBaseModel):
    name: str | None = Field(default=None, alias="Name")
    description: str | None = Field(default=None, alias="Description")
    class_name: str | None = Field(default=None, alias="ClassName")
    required_tags: list[str] = Field(default_factory=list[str], alias="RequiredTags")

    _normalize = field_validator("name", "description", "class_name", mode="before")(
        _blank_to_none
    )


class PaintItem(ScunpackedBaseModel):
    class_name: str = Field(alias="className")
    name: str | None = None
    required_tags: str | None = None
    std_item: StdItem | None = Field(default=None, alias="stdItem")

    _normalize = field_validator("name", "required_tags", mode="before")(_blank_to_none)


class PaintFile(ScunpackedBaseModel):
    item: PaintItem = Field(alias="Item")
