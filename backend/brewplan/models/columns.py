from __future__ import annotations

from enum import Enum

from ..extensions import db


def enum_type(enum_cls: type[Enum], length: int = 32):
    """
    Status/category column type persisted by the enum VALUE ("in_use", not "IN_USE").

    native_enum=False keeps SQLite and Postgres schemas identical (VARCHAR + CHECK).
    """
    return db.Enum(
        enum_cls,
        native_enum=False,
        length=length,
        values_callable=lambda members: [m.value for m in members],
        validate_strings=True,
        name=f"{enum_cls.__name__.lower()}_enum",
    )


def enum_value(value):
    return value.value if isinstance(value, Enum) else value
