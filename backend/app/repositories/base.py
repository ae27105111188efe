"""Generic MongoDB repository over one collection."""

from typing import Any, Dict, Generic, Type, TypeVar

from pymongo.database import Database

from app.entities.base import BaseEntity

T = TypeVar("T", bound=BaseEntity)


class BaseRepository(Generic[T]):
    """CRUD helpers shared by the collection repositories."""

    def __init__(self, db: Database, collection_name: str, model_class: Type[T]):
        self.db = db
        self.collection = db[collection_name]
        self.model_class = model_class

    def insert_one(self, entity: T) -> T:
        result = self.collection.insert_one(entity.to_mongo())
        entity.id = result.inserted_id
        return entity

    def count(self, query: Dict[str, Any]) -> int:
        return self.collection.count_documents(query)
