"""
Database package initialization
Centralized imports for all database components
"""
from pizzadesk.database.base import Base
from pizzadesk.database.session import engine, AsyncSessionLocal, get_db, init_db
from pizzadesk.database.store import DocumentStore

__all__ = ['Base', 'engine', 'AsyncSessionLocal', 'get_db', 'init_db', 'DocumentStore']
