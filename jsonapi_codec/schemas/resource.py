"""Pydantic schemas for resource objects of incoming JSON:API v1.1 documents."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, StrictStr


class JSONAPIResourceIdentifier(BaseModel):
    """Resource identifier object: type + id."""

    model_config = ConfigDict(extra="allow")

    type: StrictStr
    id: Optional[StrictStr] = None
    lid: Optional[StrictStr] = None
    meta: Optional[Dict[str, Any]] = None


class JSONAPIRelationship(BaseModel):
    """Relationship object; linkage is validated separately."""

    model_config = ConfigDict(extra="allow")

    data: Optional[Any] = None
    links: Optional[Dict[str, Any]] = None
    meta: Optional[Dict[str, Any]] = None


class JSONAPIResource(BaseModel):
    """Resource object with attributes and relationships."""

    model_config = ConfigDict(extra="allow")

    type: StrictStr
    id: Optional[StrictStr] = None
    lid: Optional[StrictStr] = None
    attributes: Optional[Dict[str, Any]] = None
    relationships: Optional[Dict[str, JSONAPIRelationship]] = None
    links: Optional[Dict[str, Any]] = None
    meta: Optional[Dict[str, Any]] = None

