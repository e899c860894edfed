from pydantic import Field
from typing import List, Optional
from uuid import UUID
from app.schemas.base_schema import CamelModel


class FeedbackCreate(CamelModel):
    booking_id: Optional[UUID] = Field(None, alias="bookingId")
    car_id: Optional[UUID] = Field(None, alias="carId")
    client_id: Optional[UUID] = Field(None, alias="clientId")
    feedback_text: Optional[str] = Field(None, alias="feedbackText", max_length=1000)
    rating: Optional[float] = Field(None, description="Rating from 1 to 5")


class FeedbackResult(CamelModel):
    feedback_id: UUID = Field(..., alias="feedbackId")
    system_message: str = Field(..., alias="systemMessage")


class RecentFeedback(CamelModel):
    author: str
    car_image_url: Optional[str] = Field(None, alias="carImageUrl")
    car_model: str = Field(..., alias="carModel")
    date: str
    feedback_id: UUID = Field(..., alias="feedbackId")
    feedback_text: str = Field(..., alias="feedbackText")
    order_history: str = Field(..., alias="orderHistory")
    rating: str


class RecentFeedbackList(CamelModel):
    content: List[RecentFeedback]


class ClientReview(CamelModel):
    author: str
    author_image_url: str = Field("", alias="authorImageUrl")
    date: str
    rental_experience: str = Field(..., alias="rentalExperience")
    text: str


class ClientReviewPage(CamelModel):
    content: List[ClientReview]
    current_page: int = Field(..., alias="currentPage")
    total_elements: int = Field(..., alias="totalElements")
    total_pages: int = Field(..., alias="totalPages")
