"""
Saved walk model for route persistence and sharing
"""
from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.sql import func

from app.core.db import Base


class SavedWalk(Base):
    """
    A generated route stored for later retrieval.
    The route itself lives in ``route_data`` as produced by ``Route.to_dict()``.
    """
    __tablename__ = "saved_walks"

    id = Column(Integer, primary_key=True, index=True)
    share_id = Column(String(32), unique=True, nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(String(1000), nullable=True)
    route_data = Column(JSON, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
