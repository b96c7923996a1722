"""Pydantic models for the edit service's inputs and audit entries.

The editor plugin posts either a page context (dictionary of text/link
slots plus optional image slots) or a kit context (theme settings). Both
are validated here before anything reaches the prompt compiler.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ContextType(str, Enum):
    """Kinds of edit context a request can carry."""
    PAGE = "page"
    KIT = "kit"


def _blank_if_none(v: Any) -> Any:
    return "" if v is None else v


class DictionaryEntry(BaseModel):
    """One editable text/link slot of a page or template."""

    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

    id: str = Field("", description="Element id", examples=["a1b2c3"])
    path: str = Field("", description="Element path inside the document", examples=["0/1/heading"])
    widget_type: str = Field("", description="Widget type", examples=["heading"])
    field: Optional[str] = Field(None, description="Setting key when the widget has several text fields")
    text: str = Field("", description="Current text or HTML")
    link_url: Optional[str] = Field(None, description="Current link target, when the slot is linkable")

    @field_validator("id", "path", "widget_type", "text", mode="before")
    @classmethod
    def none_to_blank(cls, v):
        return _blank_if_none(v)


class ImageSlot(BaseModel):
    """One editable image or background slot."""

    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

    id: str = ""
    path: str = ""
    slot_type: str = ""
    el_type: str = ""
    image_url: str = ""
    image_id: Optional[Union[int, str]] = None

    @field_validator("id", "path", "slot_type", "el_type", "image_url", mode="before")
    @classmethod
    def none_to_blank(cls, v):
        return _blank_if_none(v)


class PageEditRequest(BaseModel):
    """Content edit: slots plus a natural-language instruction."""

    dictionary: List[DictionaryEntry]
    instruction: str
    image_slots: List[ImageSlot] = Field(default_factory=list)
    edit_capabilities: List[str] = Field(default_factory=lambda: ["text"])

    @field_validator("instruction")
    @classmethod
    def instruction_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("instruction cannot be empty")
        return v

    @field_validator("image_slots", mode="before")
    @classmethod
    def slots_default(cls, v):
        return v if isinstance(v, list) else []

    @field_validator("edit_capabilities", mode="before")
    @classmethod
    def capabilities_default(cls, v):
        if not isinstance(v, list):
            return ["text"]
        return [str(c) for c in v if isinstance(c, (str, int, float)) and not isinstance(c, bool)]


class KitEditRequest(BaseModel):
    """Theme kit edit: current kit settings plus an instruction."""

    kit_settings: Dict[str, Any]
    instruction: str

    @field_validator("instruction")
    @classmethod
    def instruction_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("instruction cannot be empty")
        return v


class AuditRecord(BaseModel):
    """One processed request, as kept in the recent-activity buffer."""

    model_config = ConfigDict(frozen=True)

    id: str
    timestamp: str
    body: Any = None
    response: Any = None
    context_type: ContextType = ContextType.PAGE

    def to_payload(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "body": self.body,
            "response": self.response,
            "contextType": self.context_type.value,
        }
