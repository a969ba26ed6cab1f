from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.schema import Column
from sqlalchemy.types import Boolean, DateTime, Float, Integer, JSON, String, Uuid
from uuid6 import uuid7
from datetime import datetime


class Base(DeclarativeBase):
    pass


class GameRecord(Base):
    __tablename__ = "game_records"
    game_id = Column(Uuid, primary_key=True, default=uuid7)
    players = Column(JSON, nullable=False)
    difficulty = Column(String, nullable=False)
    mode = Column(String, nullable=False)
    completed_at = Column(DateTime, default=datetime.now)
    winner = Column(String, nullable=True)
    duration = Column(Float, default=0.0)
    total_errors = Column(Integer, default=0)
    total_hints = Column(Integer, default=0)
    is_completed = Column(Boolean, default=False)
