"""
Firestore document models using Python dataclasses.

Each model includes:
  - An `id` field for the Firestore document ID (where the document has one)
  - A `to_dict()` instance method for serialization
  - A `from_dict(data, doc_id)` classmethod for deserialization

Datetime fields are kept as native timezone-aware datetime objects since
Firestore handles them natively.
"""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone
from typing import Any, Dict, List, Optional


ROLES = ('admin', 'trainer', 'trainee', 'user', 'pending')
COURSE_STATUSES = ('draft', 'active', 'completed', 'cancelled')
COURSE_LEVELS = ('beginner', 'intermediate', 'advanced')
ATTENDANCE_STATUSES = ('present', 'absent')
NOTIFICATION_TYPES = ('info', 'success', 'warning', 'error')


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _parse_datetime(value) -> Optional[datetime]:
    """Convert a value to an aware datetime. Accepts datetime and date
    objects, ISO-format strings, and Firestore DatetimeWithNanoseconds."""
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)
    if isinstance(value, str):
        value = value.replace("Z", "+00:00")
        try:
            return _parse_datetime(datetime.fromisoformat(value))
        except (ValueError, TypeError):
            return None
    return None


def _now() -> datetime:
    return datetime.now(timezone.utc)


def normalize_name(value: Optional[str]) -> str:
    """Trimmed, lower-cased form used to match instructor names."""
    return (value or "").strip().lower()


# ===========================================================================
# User
# ===========================================================================

@dataclass
class User:
    uid: str = ""
    email: str = ""
    display_name: str = ""
    role: str = "pending"
    is_super_admin: bool = False
    profile_image: Optional[str] = None
    created_at: Optional[datetime] = None
    last_login: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "uid": self.uid,
            "email": self.email,
            "display_name": self.display_name,
            "role": self.role,
            "is_super_admin": self.is_super_admin,
            "profile_image": self.profile_image,
            "created_at": self.created_at or _now(),
            "last_login": self.last_login,
        }


# ===========================================================================
# Course
# ===========================================================================

@dataclass
class Course:
    id: Optional[str] = None
    title: str = ""
    instructor_id: str = ""
    instructor_name: str = ""
    category: str = ""
    level: str = "beginner"
    hours: float = 0
    duration: int = 0
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    materials: List[str] = field(default_factory=list)
    students: List[str] = field(default_factory=list)
    status: str = "draft"
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def has_trainer(self) -> bool:
        return bool(self.instructor_id)

    def is_enrollable(self) -> bool:
        return self.status in ("draft", "active")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "instructor_id": self.instructor_id,
            "instructor_name": self.instructor_name,
            "category": self.category,
            "level": self.level,
            "hours": self.hours,
            "duration": self.duration,
            "start_date": self.start_date,
            "end_date": self.end_date,
            "materials": list(self.materials),
            "students": list(self.students),
            "status": self.status,
            "created_at": self.created_at or _now(),
            "updated_at": self.updated_at or _now(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], doc_id: Optional[str] = None) -> Course:
        return cls(
            id=doc_id or data.get("id"),
            title=data.get("title", ""),
            instructor_id=data.get("instructor_id") or "",
            instructor_name=data.get("instructor_name", ""),
            category=data.get("category", ""),
            level=data.get("level", "beginner"),
            hours=data.get("hours") or 0,
            duration=data.get("duration") or 0,
            start_date=_parse_datetime(data.get("start_date")),
            end_date=_parse_datetime(data.get("end_date")),
            materials=list(data.get("materials") or []),
            students=list(data.get("students") or []),
            status=data.get("status", "draft"),
            created_at=_parse_datetime(data.get("created_at")),
            updated_at=_parse_datetime(data.get("updated_at")),
        )


# ===========================================================================
# Enrollment entry (denormalised copy of a course inside enrollments/{uid})
# ===========================================================================

@dataclass
class EnrollmentCourse:
    course_id: str = ""
    enrolled_at: Optional[datetime] = None
    title: str = ""
    instructor_id: str = ""
    instructor_name: str = ""
    hours: float = 0
    level: str = "beginner"
    category: str = ""
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    materials: List[str] = field(default_factory=list)
    status: str = "draft"

    # Fields copied from the course document on enrollment and on every
    # course update.
    COPIED_FIELDS = ("title", "instructor_id", "instructor_name", "hours", "level",
                     "category", "start_date", "end_date", "materials", "status")

    @classmethod
    def from_course(cls, course: Dict[str, Any], enrolled_at: Optional[datetime] = None) -> EnrollmentCourse:
        c = Course.from_dict(course)
        return cls(
            course_id=c.id,
            enrolled_at=enrolled_at or _now(),
            title=c.title,
            instructor_id=c.instructor_id,
            instructor_name=c.instructor_name,
            hours=c.hours,
            level=c.level,
            category=c.category,
            start_date=c.start_date,
            end_date=c.end_date,
            materials=list(c.materials),
            status=c.status,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "course_id": self.course_id,
            "enrolled_at": self.enrolled_at or _now(),
            "title": self.title,
            "instructor_id": self.instructor_id,
            "instructor_name": self.instructor_name,
            "hours": self.hours,
            "level": self.level,
            "category": self.category,
            "start_date": self.start_date,
            "end_date": self.end_date,
            "materials": list(self.materials),
            "status": self.status,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> EnrollmentCourse:
        return cls(
            course_id=data.get("course_id", ""),
            enrolled_at=_parse_datetime(data.get("enrolled_at")),
            title=data.get("title", ""),
            instructor_id=data.get("instructor_id") or "",
            instructor_name=data.get("instructor_name", ""),
            hours=data.get("hours") or 0,
            level=data.get("level", "beginner"),
            category=data.get("category", ""),
            start_date=_parse_datetime(data.get("start_date")),
            end_date=_parse_datetime(data.get("end_date")),
            materials=list(data.get("materials") or []),
            status=data.get("status", "draft"),
        )


# ===========================================================================
# Training session (class meeting of a course)
# ===========================================================================

@dataclass
class Attendee:
    student_id: str = ""
    student_name: str = ""
    status: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "student_id": self.student_id,
            "student_name": self.student_name,
            "status": self.status,
        }


@dataclass
class TrainingSession:
    id: Optional[str] = None
    course_id: str = ""
    course_name: str = ""
    trainer_id: str = ""
    topic: str = ""
    description: Optional[str] = None
    location: Optional[str] = None
    date: Optional[datetime] = None
    hours: float = 0
    train_start: Optional[datetime] = None
    train_end: Optional[datetime] = None
    attendees: List[Attendee] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "course_id": self.course_id,
            "course_name": self.course_name,
            "trainer_id": self.trainer_id,
            "topic": self.topic,
            "description": self.description,
            "location": self.location,
            "date": self.date,
            "hours": self.hours,
            "train_start": self.train_start,
            "train_end": self.train_end,
            "attendees": [a.to_dict() for a in self.attendees],
        }


# ===========================================================================
# Training material
# ===========================================================================

@dataclass
class Material:
    name: str = ""
    size: int = 0
    type: str = "application/octet-stream"
    description: str = ""
    content: str = ""
    course_id: str = ""
    course_name: str = ""
    trainer_id: str = ""
    trainer_name: str = ""
    uploaded_at: Optional[datetime] = None

    @staticmethod
    def kind_for(mime_type: Optional[str]) -> str:
        mime_type = (mime_type or "").lower()
        if mime_type.startswith("image/"):
            return "image"
        if mime_type.startswith("video/"):
            return "video"
        if mime_type == "application/pdf" or "document" in mime_type \
                or "word" in mime_type or "sheet" in mime_type \
                or "presentation" in mime_type or mime_type.startswith("text/"):
            return "document"
        return "other"

    @property
    def kind(self) -> str:
        return self.kind_for(self.type)

    @staticmethod
    def to_data_url(raw: bytes, mime_type: str) -> str:
        return f"data:{mime_type};base64,{base64.b64encode(raw).decode('ascii')}"

    @staticmethod
    def decode_data_url(content: str):
        """Split a data URL into (mime_type, bytes). Raises ValueError."""
        if not content or not content.startswith("data:") or "," not in content:
            raise ValueError("Not a data URL")
        header, payload = content[5:].split(",", 1)
        mime_type = header.split(";")[0] or "application/octet-stream"
        try:
            return mime_type, base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValueError("Malformed base64 payload") from e

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "size": self.size,
            "type": self.type,
            "kind": self.kind,
            "description": self.description,
            "content": self.content,
            "course_id": self.course_id,
            "course_name": self.course_name,
            "trainer_id": self.trainer_id,
            "trainer_name": self.trainer_name,
            "uploaded_at": self.uploaded_at or _now(),
        }


# ===========================================================================
# Feedback message
# ===========================================================================

@dataclass
class FeedbackMessage:
    trainer_id: str = ""
    trainee_id: str = ""
    sender: str = "trainee"
    message: str = ""
    status: str = "sent"
    hidden_for: List[str] = field(default_factory=list)
    created_at: Optional[datetime] = None
    edited_at: Optional[datetime] = None

    def sender_id(self) -> str:
        return self.trainer_id if self.sender == "trainer" else self.trainee_id

    def to_dict(self) -> Dict[str, Any]:
        return {
            "trainer_id": self.trainer_id,
            "trainee_id": self.trainee_id,
            "sender": self.sender,
            "message": self.message,
            "status": self.status,
            "hidden_for": list(self.hidden_for),
            "created_at": self.created_at or _now(),
            "edited_at": self.edited_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> FeedbackMessage:
        return cls(
            trainer_id=data.get("trainer_id", ""),
            trainee_id=data.get("trainee_id", ""),
            sender=data.get("sender", "trainee"),
            message=data.get("message", ""),
            status=data.get("status", "sent"),
            hidden_for=list(data.get("hidden_for") or []),
            created_at=_parse_datetime(data.get("created_at")),
            edited_at=_parse_datetime(data.get("edited_at")),
        )


# ===========================================================================
# Grade
# ===========================================================================

@dataclass
class Grade:
    trainee_id: str = ""
    course_id: str = ""
    trainer_id: str = ""
    score: float = 0
    remarks: str = ""

    @property
    def key(self) -> str:
        return f"{self.trainee_id}_{self.course_id}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "trainee_id": self.trainee_id,
            "course_id": self.course_id,
            "trainer_id": self.trainer_id,
            "score": self.score,
            "remarks": self.remarks,
        }
