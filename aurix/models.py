"""
SQLModel Database Models

Tables backing the SQL history tracker: overload index history and the
user's overload feedback.
"""

from datetime import datetime

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel

from aurix.utils.id_generator import generate_feedback_id, generate_history_id


class OverloadHistoryRecord(SQLModel, table=True):
    """
    One stored overload index value.

    Rows are read back ascending by ``timestamp``; ``sequence`` orders rows
    that share a timestamp under the keep-both tie-break.
    """
    __tablename__ = "overload_history"

    id: str = Field(default_factory=generate_history_id, primary_key=True)
    timestamp: datetime = Field(index=True)
    sequence: int = Field(default=0)
    index: float
    breakdown: dict = Field(default_factory=dict, sa_column=Column(JSON))


class FeedbackRecord(SQLModel, table=True):
    """How overloaded the user felt (0-10) next to the index shown at the time."""
    __tablename__ = "overload_feedback"

    id: str = Field(default_factory=generate_feedback_id, primary_key=True)
    timestamp: datetime = Field(index=True)
    rating: float
    index: float
