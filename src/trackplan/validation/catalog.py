"""Request bodies for the HTTP adapter.

Fields the catalog layer checks itself (names, types, status) are optional here so that the caller
gets the catalog's specific 400 message instead of a generic schema error.
"""
from __future__ import annotations
from datetime import datetime
from typing import Any, Dict
from pydantic import BaseModel, Field


class ProductIn(BaseModel):
    name: str | None = None
    description: str | None = None


class PageIn(BaseModel):
    name: str | None = None
    url: str | None = None


class EventIn(BaseModel):
    name: str | None = None
    status: str | None = None
    test_date: datetime | None = Field(None, alias="testDate")
    properties: Dict[str, Any] = Field(default_factory=dict)

    model_config = {"populate_by_name": True}


class EventUpdateIn(BaseModel):
    name: str | None = None
    status: str | None = None
    test_date: datetime | None = Field(None, alias="testDate")
    properties: Dict[str, Any] | None = None

    model_config = {"populate_by_name": True}


class PropertyIn(BaseModel):
    name: str | None = None
    type: str | None = None
    description: str | None = None


class PropertyUpdateIn(BaseModel):
    name: str | None = None
    type: str | None = None
    description: str | None = None


class SuggestedValueIn(BaseModel):
    value: str | None = None
    is_contextual: bool | None = Field(None, alias="isContextual")

    model_config = {"populate_by_name": True}


class AssociationIn(BaseModel):
    suggested_value_id: int | None = Field(None, alias="suggestedValueId")

    model_config = {"populate_by_name": True}


class CommonPropertyIn(BaseModel):
    property_id: int | None = Field(None, alias="propertyId")
    suggested_value_id: int | None = Field(None, alias="suggestedValueId")

    model_config = {"populate_by_name": True}


class CommonPropertyUpdateIn(BaseModel):
    suggested_value_id: int | None = Field(None, alias="suggestedValueId")

    model_config = {"populate_by_name": True}
