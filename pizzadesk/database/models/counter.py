"""
Named counters (a single "orders" row holds the current order number)
Only ever mutated through DocumentStore.increment_counter / reset_counter.
"""
from sqlalchemy import Column, Integer, String
from pizzadesk.database.base import Base


class Counter(Base):
    __tablename__ = "counters"

    name = Column(String(50), primary_key=True)
    current_number = Column(Integer, nullable=False, default=0)
