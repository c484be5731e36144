from datetime import datetime, timezone

from sqlalchemy import (
    Boolean, Column, DateTime, ForeignKey,
    Index, Integer, String
)

from .base import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Book(Base):
    __tablename__ = 'book'
    __table_args__ = (
        Index('book_status_idx', 'status'),
        Index('book_learning_area_idx', 'learning_area'),
        Index('book_grade_level_idx', 'grade_level'),
    )

    # Strictly increasing; doubles as the pagination cursor
    id = Column(Integer, primary_key=True, autoincrement=True)
    book_code = Column(String(50), nullable=False, unique=True)
    learning_area = Column(String(100), nullable=False)
    grade_level = Column(Integer, nullable=False)
    publisher = Column(String(200), nullable=False)
    title = Column(String(500), nullable=False)
    status = Column(String(64), nullable=False, default="For Evaluation")
    is_new = Column(Boolean, nullable=False, default=True)
    ntp_date = Column(DateTime(True))
    created_at = Column(DateTime(True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(True), nullable=False, default=utcnow, onupdate=utcnow)
    created_by = Column(String(255))
    updated_by = Column(String(255))


class Remark(Base):
    __tablename__ = 'remark'
    __table_args__ = (
        Index('remark_book_code_idx', 'book_code'),
        Index('remark_timestamp_idx', 'timestamp'),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    # Renames and deletes of the owning book are cascaded by the book service
    book_code = Column(ForeignKey('book.book_code', ondelete='CASCADE', onupdate='CASCADE'), nullable=False)
    text = Column(String(1000), nullable=False)
    timestamp = Column(DateTime(True), nullable=False, default=utcnow)
    created_by = Column(String(255))

    # Transfer metadata
    from_party = Column('from', String(100))
    to_party = Column('to', String(100))
    from_date = Column(DateTime(True))
    to_date = Column(DateTime(True))
    status = Column(String(1000))
    days_delay_deped = Column(Integer)
    days_delay_publisher = Column(Integer)
