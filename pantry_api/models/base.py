"""
Pantry API — Shared Column Helpers
===================================

What:  Column factories reused by every table.
Why:   Every row has a textual UUID primary key and UTC audit timestamps; declaring
       them once keeps the tables and the initial migration in step.
"""

from datetime import datetime

from sqlalchemy import String, TIMESTAMP, text
from sqlalchemy.orm import Mapped, mapped_column

from pantry_api.database import new_id, utc_now


def id_column() -> Mapped[str]:
    # Why String(36): ids flow unchanged into URLs and cache keys
    return mapped_column(String(36), primary_key=True, default=new_id)


def created_at_column() -> Mapped[datetime]:
    return mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=utc_now,
        server_default=text("CURRENT_TIMESTAMP"),
    )


def updated_at_column() -> Mapped[datetime]:
    return mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
        server_default=text("CURRENT_TIMESTAMP"),
    )
