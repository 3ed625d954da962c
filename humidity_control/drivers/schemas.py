from __future__ import annotations
from typing import Any, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class HubCharacteristic(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    type: Optional[str] = None
    value: Any = None
    description: Optional[str] = None
    perms: List[str] = Field(default_factory=list)


class HubService(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    type: Optional[str] = None
    name: Optional[str] = None
    characteristics: List[HubCharacteristic] = Field(
        default_factory=list,
        validation_alias=AliasChoices("characteristics", "serviceCharacteristics"),
    )


class HubAccessory(BaseModel):
    """One accessory record from GET /api/accessories."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str = Field(validation_alias=AliasChoices("uuid", "uniqueId", "id"))
    display_name: str = Field(
        default="",
        validation_alias=AliasChoices("displayName", "serviceName", "name", "display_name"),
    )
    plugin: Optional[str] = None
    services: List[HubService] = Field(default_factory=list)


class SetCharacteristicRequest(BaseModel):
    characteristicType: str
    value: Any
