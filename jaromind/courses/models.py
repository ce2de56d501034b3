from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from datetime import datetime

from jaromind.courses.identifiers import normalize_document

# ==================== COURSE MODELS ====================

class Course(BaseModel):
    """
    Course as exposed to callers. Catalog metadata (curriculum, tutor,
    pricing, tags...) is free-form and kept as extra fields.
    """
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str
    title: str = ""
    is_active: bool = Field(True, alias="isActive")
    enrollment_count: int = Field(0, alias="enrollmentCount")
    rating: float = 0.0
    review_count: int = Field(0, alias="reviewCount")

    @classmethod
    def from_document(cls, doc: dict) -> "Course":
        return cls.model_validate(normalize_document(doc))

    def to_response(self) -> dict:
        return self.model_dump(by_alias=True)


class CourseCreate(BaseModel):
    model_config = ConfigDict(extra="allow")

    title: str
    description: str = ""
    type: Optional[str] = None
    price: float = 0.0


class CourseListFilters(BaseModel):
    type: Optional[str] = None
    class_level: Optional[str] = None
    subject: Optional[str] = None
    status: Optional[str] = None
    category: Optional[str] = None
    featured: bool = False


# ==================== ENROLLMENT MODELS ====================

class Enrollment(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    user_id: str = Field(alias="userId")
    course_id: str = Field(alias="courseId")
    enrolled_at: datetime = Field(alias="enrolledAt")
    progress: int = 0
    completed_lessons: List[str] = Field(default_factory=list, alias="completedLessons")
    last_accessed_at: datetime = Field(alias="lastAccessedAt")
    completed_at: Optional[datetime] = Field(None, alias="completedAt")
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")

    @classmethod
    def from_document(cls, doc: dict) -> "Enrollment":
        return cls.model_validate({k: v for k, v in doc.items() if k != "_id"})

    def to_response(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class ProgressUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    progress: int
    completed_lessons: List[str] = Field(default_factory=list, alias="completedLessons")
