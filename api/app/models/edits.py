"""Typed results of the edit pipeline.

An :class:`EditRecord` addresses one slot by ``id``/``path`` and carries one
variant per kind of change (text, link, image). A :class:`KitPatch` carries
changed system colors and typography for a theme kit. Both are validated
when built, and ``to_payload()`` flattens them back to the wire shape the
editor plugin applies.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

AttachmentId = Union[int, str]

TYPOGRAPHY_PREFIX = "typography_"


class TextChange(BaseModel):
    """Replacement text for a slot, optionally scoped to a field or list item."""

    new_text: str
    field: Optional[str] = None
    item_index: Optional[int] = Field(None, ge=0)


class LinkTarget(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    url: str
    is_external: Optional[bool] = None
    nofollow: Optional[bool] = None


class LinkChange(BaseModel):
    new_url: Optional[str] = None
    new_link: Optional[LinkTarget] = None

    @model_validator(mode="after")
    def _require_target(self) -> "LinkChange":
        if self.new_url is None and self.new_link is None:
            raise ValueError("link change needs new_url or new_link")
        return self


class ImageRef(BaseModel):
    model_config = ConfigDict(extra="ignore")

    url: Optional[str] = None
    id: Optional[AttachmentId] = None

    @model_validator(mode="after")
    def _require_reference(self) -> "ImageRef":
        if self.url is None and self.id is None:
            raise ValueError("image reference needs url or id")
        return self


class ImageChange(BaseModel):
    new_image_url: Optional[str] = None
    new_attachment_id: Optional[AttachmentId] = None
    new_image: Optional[ImageRef] = None

    @model_validator(mode="after")
    def _require_source(self) -> "ImageChange":
        if self.new_image_url is None and self.new_attachment_id is None and self.new_image is None:
            raise ValueError("image change needs new_image_url, new_attachment_id or new_image")
        return self


class EditRecord(BaseModel):
    """One validated edit instruction."""

    model_config = ConfigDict(frozen=True)

    id: str = ""
    path: str = ""
    text: Optional[TextChange] = None
    link: Optional[LinkChange] = None
    image: Optional[ImageChange] = None

    @model_validator(mode="after")
    def _check_invariants(self) -> "EditRecord":
        if not self.id and not self.path:
            raise ValueError("edit record needs a non-empty id or path")
        if self.text is None and self.link is None and self.image is None:
            raise ValueError("edit record carries no change")
        return self

    def to_payload(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"id": self.id, "path": self.path}
        if self.text is not None:
            out["new_text"] = self.text.new_text
            if self.text.field is not None:
                out["field"] = self.text.field
            if self.text.item_index is not None:
                out["item_index"] = self.text.item_index
        if self.link is not None:
            if self.link.new_url is not None:
                out["new_url"] = self.link.new_url
            if self.link.new_link is not None:
                out["new_link"] = self.link.new_link.model_dump(exclude_none=True)
        if self.image is not None:
            if self.image.new_image_url is not None:
                out["new_image_url"] = self.image.new_image_url
            if self.image.new_attachment_id is not None:
                out["new_attachment_id"] = self.image.new_attachment_id
            if self.image.new_image is not None:
                out["new_image"] = self.image.new_image.model_dump(exclude_none=True)
        return out


class KitColor(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str = Field(..., alias="_id")
    title: str = ""
    value: str = Field(..., min_length=1)

    def to_payload(self) -> Dict[str, Any]:
        return {"_id": self.id, "title": self.title, "value": self.value}


class KitTypography(BaseModel):
    """A system typography entry; ``typography_*`` settings live in the extras."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str = Field(..., alias="_id")
    title: Optional[str] = None

    @model_validator(mode="after")
    def _check_settings(self) -> "KitTypography":
        extras = self.model_extra or {}
        if not extras:
            raise ValueError("typography entry carries no typography_* setting")
        stray = [key for key in extras if not key.startswith(TYPOGRAPHY_PREFIX)]
        if stray:
            raise ValueError(f"unexpected typography keys: {stray}")
        return self

    @property
    def settings(self) -> Dict[str, Any]:
        return dict(self.model_extra or {})

    def to_payload(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"_id": self.id}
        if self.title is not None:
            out["title"] = self.title
        out.update(self.settings)
        return out


class KitPatch(BaseModel):
    colors: Optional[List[KitColor]] = None
    typography: Optional[List[KitTypography]] = None
    settings: Optional[Dict[str, Any]] = None

    def to_payload(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        if self.colors is not None:
            out["colors"] = [color.to_payload() for color in self.colors]
        if self.typography is not None:
            out["typography"] = [entry.to_payload() for entry in self.typography]
        if self.settings is not None:
            out["settings"] = self.settings
        return out
