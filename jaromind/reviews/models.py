from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Optional

# ==================== REVIEW MODELS ====================

RATING_MIN = 1
RATING_MAX = 5
COMMENT_MIN_LENGTH = 10
COMMENT_MAX_LENGTH = 1000


class ReviewInput(BaseModel):
    """Request body for submitting or updating a review; bounds checked by the service"""
    rating: int
    comment: str


class Review(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    course_id: str = Field(alias="courseId")
    user_id: str = Field(alias="userId")
    user_name: str = Field("Anonymous", alias="userName")
    rating: int
    comment: str
    date: Optional[datetime] = None
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")

    @classmethod
    def from_document(cls, doc: dict) -> "Review":
        """Decode a stored review; ObjectIds become hex strings"""
        return cls(
            id=str(doc["_id"]),
            course_id=doc["course_id"],
            user_id=str(doc["user_id"]),
            user_name=doc.get("user_name") or "Anonymous",
            rating=doc["rating"],
            comment=doc.get("comment", ""),
            date=doc.get("date"),
            created_at=doc.get("created_at"),
            updated_at=doc.get("updated_at"),
        )

    def to_response(self) -> dict:
        return self.model_dump(by_alias=True)
