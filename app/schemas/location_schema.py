from pydantic import Field
from typing import List, Optional
from uuid import UUID
from app.schemas.base_schema import CamelModel


class LocationCreate(CamelModel):
    location_name: str = Field(..., min_length=1, alias="locationName")
    location_address: str = Field(..., min_length=1, alias="locationAddress")
    location_url: Optional[str] = Field(None, alias="locationUrl")


class LocationOut(CamelModel):
    location_id: UUID = Field(..., alias="locationId")
    location_name: str = Field(..., alias="locationName")
    location_address: str = Field(..., alias="locationAddress")
    location_url: Optional[str] = Field(None, alias="locationUrl")


class LocationList(CamelModel):
    content: List[LocationOut]
