"""Shared base model helpers for SQLAlchemy models."""
from __future__ import annotations

from typing import Any, Iterable, Optional, Type, TypeVar

from ..providers import db

ModelType = TypeVar("ModelType", bound="BaseModel")


class BaseModel(db.Model):
    """Provides convenience helpers for CRUD operations."""

    __abstract__ = True

    id = db.Column(db.Integer, primary_key=True)

    @classmethod
    def get(cls: Type[ModelType], object_id: Any) -> Optional[ModelType]:
        return db.session.get(cls, object_id)

    @classmethod
    def bulk_create(cls: Type[ModelType], objs: Iterable[ModelType]) -> None:
        db.session.add_all(list(objs))
        db.session.commit()


__all__ = ["BaseModel"]
