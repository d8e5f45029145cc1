"""SQLAlchemy ORM models for persisted library entities.

Separate from the Pydantic models in library.py which describe request
validation and response shapes. This layer manages persistence concerns only.
"""
from __future__ import annotations
from datetime import datetime
from typing import List, Optional
from sqlalchemy.orm import (
    Mapped,
    mapped_column,
    declarative_base,
    relationship,
)
from sqlalchemy import (
    String,
    DateTime,
    Text,
    ForeignKey,
    UniqueConstraint,
)

Base = declarative_base()


class CourseRecord(Base):
    __tablename__ = "courses"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), unique=True, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow
    )

    specializations: Mapped[List["SpecializationRecord"]] = relationship(
        back_populates="course",
        order_by="SpecializationRecord.name",
        lazy="selectin",
    )

    def to_dict(self, include_specializations: bool = True) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "createdAt": self.created_at.isoformat(),
        }
        if include_specializations:
            data["specializations"] = [
                s.to_dict() for s in self.specializations
            ]
        return data


class SpecializationRecord(Base):
    """A specialization scoped to one course.

    Names are only unique within their course: B.Tech and M.Tech may both
    own a "CSE" specialization.
    """

    __tablename__ = "specializations"
    __table_args__ = (
        UniqueConstraint(
            "name", "course_id", name="uq_specializations_name_course"
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100))
    course_id: Mapped[int] = mapped_column(
        ForeignKey("courses.id", ondelete="CASCADE"), index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow
    )

    course: Mapped[CourseRecord] = relationship(
        back_populates="specializations"
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "courseId": self.course_id,
            "createdAt": self.created_at.isoformat(),
        }


class ResourceRecord(Base):
    """Metadata for one uploaded document.

    ``course`` and ``specialization`` are free text, not foreign keys, so a
    resource can be tagged outside the managed taxonomy. ``file_url`` is
    written once from the blob sink and never updated.
    """

    __tablename__ = "resources"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(100))
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    file_name: Mapped[str] = mapped_column(String(255))
    file_url: Mapped[str] = mapped_column(Text)
    file_type: Mapped[str] = mapped_column(String(100))
    category: Mapped[str] = mapped_column(String(50), index=True)
    course: Mapped[Optional[str]] = mapped_column(
        String(50), nullable=True, index=True
    )
    specialization: Mapped[Optional[str]] = mapped_column(
        String(50), nullable=True, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, index=True
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "fileName": self.file_name,
            "fileUrl": self.file_url,
            "fileType": self.file_type,
            "category": self.category,
            "course": self.course,
            "specialization": self.specialization,
            "createdAt": self.created_at.isoformat(),
        }
