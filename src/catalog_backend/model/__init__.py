from .base import Base, metadata
from .auth import User
from .book import Book, Remark

__all__ = [
    'Base',
    'metadata',
    'User',
    'Book',
    'Remark',
]
