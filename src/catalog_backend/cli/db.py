import asyncio
import click
import yaml
from pydantic import ValidationError
from typing import Optional
from sqlalchemy.orm import Session

from catalog_backend.api.cache import BookListCache
from catalog_backend.database import get_db, get_engine
from catalog_backend.interface.books import BookCreate
from catalog_backend.model import Base, Book, User
from catalog_backend.permissions.principal import AccessRule
from catalog_backend.redis_cache import _redis_cache
from catalog_backend.services.book_service import create_book


def seed_users(users: list, db: Session) -> int:
    count = 0

    for raw in users:
        rules = [AccessRule(**rule).model_dump() for rule in raw.get("access_rules", [])]

        user = db.query(User).filter(User.username == raw["username"]).first()

        if user is None:
            user = User(username=raw["username"])
            db.add(user)

        user.name = raw.get("name", raw["username"])
        user.email = raw.get("email")
        user.role = raw.get("role", "Facilitator")
        user.is_admin_access = bool(raw.get("is_admin_access", False))
        user.access_rules = rules
        count += 1

    db.commit()
    return count


def seed_books(books: list, db: Session, cache: Optional[BookListCache] = None) -> int:
    count = 0

    for raw in books:
        entity = BookCreate(**raw)

        if entity.book_code and db.query(Book.id).filter(Book.book_code == entity.book_code).first() is not None:
            click.echo(f"Skipping existing book {entity.book_code}")
            continue

        asyncio.run(create_book(None, db, entity))
        count += 1

    if count and cache is not None:
        asyncio.run(cache.invalidate())

    return count


def seed_cache() -> BookListCache:
    return BookListCache(_redis_cache)


@click.command()
def init():
    """Create all catalog tables"""
    Base.metadata.create_all(get_engine())
    click.echo("Database tables created")


@click.command()
@click.option("--file", "-f", "file", type=click.Path(exists=True, dir_okay=False), required=True)
def seed(file):
    """Load users and books from a YAML file"""

    with open(file, "r") as f:
        data = yaml.safe_load(f) or {}

    Base.metadata.create_all(get_engine())

    try:
        with next(get_db()) as db:
            users = seed_users(data.get("users", []), db)
            books = seed_books(data.get("books", []), db, seed_cache())
    except ValidationError as e:
        raise click.ClickException(f"Invalid seed file: {e}")

    click.echo(f"Seeded {users} users and {books} books")


@click.group()
def db():
    pass

db.add_command(init,"init")
db.add_command(seed,"seed")
