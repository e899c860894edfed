from pydantic import Field
from typing import List, Optional
from uuid import UUID
from app.schemas.base_schema import CamelModel


class CarCreate(CamelModel):
    model: str = Field(..., min_length=1)
    category: str
    gear_box_type: Optional[str] = Field(None, alias="gearBoxType")
    fuel_type: Optional[str] = Field(None, alias="fuelType")
    passenger_capacity: Optional[int] = Field(None, ge=1, alias="passengerCapacity")
    price_per_day: float = Field(..., gt=0, alias="pricePerDay")
    images: List[str] = Field(default_factory=list)
    service_rating: int = Field(5, ge=1, le=5, alias="serviceRating")
    location_ids: List[UUID] = Field(..., min_length=1, alias="locationIds")


class CarSummary(CamelModel):
    car_id: UUID = Field(..., alias="carId")
    car_rating: float = Field(..., alias="carRating")
    image_url: str = Field("", alias="imageUrl")
    location: str
    model: str
    price_per_day: float = Field(..., alias="pricePerDay")
    service_rating: int = Field(..., alias="serviceRating")
    status: str


class CarDetails(CarSummary):
    category: str
    gear_box_type: Optional[str] = Field(None, alias="gearBoxType")
    fuel_type: Optional[str] = Field(None, alias="fuelType")
    passenger_capacity: Optional[int] = Field(None, alias="passengerCapacity")
    images: List[str]
    location_ids: List[UUID] = Field(..., alias="locationIds")


class CarPage(CamelModel):
    content: List[CarSummary]
    current_page: int = Field(..., alias="currentPage")
    total_elements: int = Field(..., alias="totalElements")
    total_pages: int = Field(..., alias="totalPages")


class CarList(CamelModel):
    content: List[CarSummary]


class BookedDays(CamelModel):
    content: List[str]
