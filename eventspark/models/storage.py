"""Key/value rows backing each visitor's decision store.

Each visitor gets a namespace (their visitor id). Within it, one row per
storage key holds a JSON string, mirroring how a browser keeps saved and
dismissed event ids under two local-storage keys.
"""

from datetime import UTC, datetime

from sqlalchemy import Column, DateTime
from sqlmodel import Field, SQLModel


class StorageEntry(SQLModel, table=True):
    """One stored value.

    Attributes:
        namespace: Owner of the value, normally a visitor id.
        key: Storage key within the namespace.
        value: Raw stored text. Readers must not assume it is valid JSON.
        updated_at: Last write time.
    """
    namespace: str = Field(primary_key=True)
    key: str = Field(primary_key=True)
    value: str
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
