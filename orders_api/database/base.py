"""
SQLAlchemy declarative base and common model mixins.

This module provides the DeclarativeBase shared by every model, plus mixins
for integer identity primary keys and store-managed timestamps. Timestamps
are assigned by the database (or by the order store on persist), never by
domain code.
"""

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, Identity, func
from sqlalchemy.ext.asyncio import AsyncAttrs
from sqlalchemy.orm import DeclarativeBase, Mapped, declared_attr, mapped_column


class Base(AsyncAttrs, DeclarativeBase):
    """
    Base class for all SQLAlchemy models with async support.

    Provides common functionality for all database models including
    async attribute loading and a primary-key based repr.
    """

    __abstract__ = True

    def __repr__(self) -> str:
        pk_values = []
        for column in self.__table__.primary_key.columns:
            value = getattr(self, column.key, None)
            if value is not None:
                pk_values.append(f"{column.name}={value!r}")

        pk_str = ", ".join(pk_values) if pk_values else "transient"
        return f"<{self.__class__.__name__}({pk_str})>"


class IntegerIdMixin:
    """
    Mixin for an integer identity primary key.

    The value is generated by the database on insert.
    """

    @declared_attr
    def id(cls) -> Mapped[int]:
        return mapped_column(
            BigInteger,
            Identity(always=False),
            primary_key=True,
            comment="Unique identifier for the record",
        )


class TimestampMixin:
    """
    Mixin for automatic timestamp management.

    Adds created_at and updated_at columns with server-side defaults.
    """

    @declared_attr
    def created_at(cls) -> Mapped[datetime]:
        return mapped_column(
            DateTime(timezone=True),
            nullable=False,
            server_default=func.now(),
            comment="Timestamp when record was created",
        )

    @declared_attr
    def updated_at(cls) -> Mapped[datetime]:
        return mapped_column(
            DateTime(timezone=True),
            nullable=False,
            server_default=func.now(),
            onupdate=func.now(),
            comment="Timestamp when record was last updated",
        )


class BaseModel(Base, IntegerIdMixin, TimestampMixin):
    """
    Base model with integer primary key and timestamps.

    Example:
        class Customer(BaseModel):
            __tablename__ = "customers"

            name: Mapped[str] = mapped_column(String(150))
    """

    __abstract__ = True
