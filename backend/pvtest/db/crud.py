"""
Generic CRUD helper for the registry tables (devices, templates, alerts).

Experiments and samples go through the lifecycle manager instead.
"""
from typing import TypeVar, Generic, Type, List, Dict, Any
from sqlalchemy.orm import Session
from sqlalchemy import select, inspect
from pydantic import BaseModel

from pvtest.core.exceptions import NotFoundError

ModelType = TypeVar("ModelType")
CreateSchemaType = TypeVar("CreateSchemaType", bound=BaseModel)
UpdateSchemaType = TypeVar("UpdateSchemaType", bound=BaseModel)


class CRUDBase(Generic[ModelType, CreateSchemaType, UpdateSchemaType]):
    """
    Lookup, listing, creation and partial update for one model.

    Args:
        model: SQLAlchemy model class
        label: Name used in not-found messages, defaults to the class name
    """

    def __init__(self, model: Type[ModelType], label: str = None):
        self.model = model
        self.label = label or model.__name__
        self._required = {
            column.key for column in inspect(model).columns
            if not column.nullable
        }

    def get(self, db: Session, id: int) -> ModelType:
        """
        Fetch a record by primary key.

        Raises:
            NotFoundError: If no record has this id
        """
        obj = db.get(self.model, id)
        if obj is None:
            raise NotFoundError(self.label, id)
        return obj

    def get_multi(self, db: Session, skip: int = 0, limit: int = 100) -> List[ModelType]:
        """Records in id order, `limit` at a time."""
        stmt = select(self.model).order_by(self.model.id).offset(skip).limit(limit)
        return list(db.execute(stmt).scalars().all())

    def create(self, db: Session, obj_in: CreateSchemaType | Dict[str, Any]) -> ModelType:
        data = obj_in if isinstance(obj_in, dict) else obj_in.model_dump()
        db_obj = self.model(**data)
        return self._save(db, db_obj)

    def update(
        self,
        db: Session,
        db_obj: ModelType,
        obj_in: UpdateSchemaType | Dict[str, Any]
    ) -> ModelType:
        """
        Apply a partial update.

        Explicit nulls for NOT NULL columns are ignored, so a client sending
        `{"status": null}` leaves the stored status as it was.
        """
        data = obj_in if isinstance(obj_in, dict) else obj_in.model_dump(exclude_unset=True)

        for name, value in data.items():
            if value is None and name in self._required:
                continue
            if hasattr(db_obj, name):
                setattr(db_obj, name, value)

        return self._save(db, db_obj)

    def _save(self, db: Session, db_obj: ModelType) -> ModelType:
        try:
            db.add(db_obj)
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.refresh(db_obj)
        return db_obj
