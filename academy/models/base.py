from sqlalchemy.orm import as_declarative, declared_attr
from sqlalchemy.orm import mapped_column
from sqlalchemy import DateTime, Uuid, func
import uuid


@as_declarative()
class Base:
    __abstract__ = True  # Prevents creating a table for the base class

    @declared_attr
    def __tablename__(cls) -> str:
        return cls.__name__.lower()

    created_at = mapped_column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class UUIDPrimaryKeyMixin:
    # Generic Uuid maps to native UUID on PostgreSQL and CHAR(32) on SQLite
    id = mapped_column(Uuid(as_uuid=True), primary_key=True, index=True, default=uuid.uuid4)
