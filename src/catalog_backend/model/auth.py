from sqlalchemy import Boolean, Column, DateTime, Integer, JSON, String

from .base import Base
from .book import utcnow


class User(Base):
    __tablename__ = 'user'

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(255), nullable=False, unique=True)
    name = Column(String(255), nullable=False)
    email = Column(String(320), unique=True)
    role = Column(String(32), nullable=False, default="Facilitator")
    is_admin_access = Column(Boolean, nullable=False, default=False)
    # [{"learning_areas": [...], "grade_levels": [...]}, ...]
    access_rules = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(True), nullable=False, default=utcnow, onupdate=utcnow)
