"""Database models for TermBeacon using Peewee ORM."""

from datetime import datetime

from peewee import CharField, DatabaseProxy, DateTimeField, Model, TextField

from termbeacon.exceptions import DatabaseError

# Database proxy that will be initialized by manager
db_proxy = DatabaseProxy()


class BaseModel(Model):
    """Base model bound to the shared proxy."""

    class Meta:
        database = db_proxy


class Setting(BaseModel):
    """Key/value blob storage; values are JSON text."""

    key = CharField(max_length=64, primary_key=True)
    value = TextField()
    updated_at = DateTimeField(default=datetime.now)

    class Meta:
        table_name = "settings"


def create_tables() -> None:
    """Create all database tables."""
    if db_proxy.obj is None:
        raise DatabaseError("Database not initialized")
    db_proxy.create_tables([Setting], safe=True)
