"""
Category model used to group events.
"""

from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship

from ticketbook.db.base import Base, TimestampMixin


class Category(Base, TimestampMixin):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False)
    description = Column(String(500), nullable=True)
    icon = Column(String(100), nullable=True)
    color = Column(String(32), nullable=True)

    events = relationship("Event", back_populates="category")

    def __repr__(self) -> str:
        return f"<Category(id={self.id}, name={self.name})>"
