"""Database package for the telesales CRM."""
from db.connection import AsyncSessionLocal, create_tables, dispose_engine, engine, get_db

__all__ = ["engine", "AsyncSessionLocal", "get_db", "create_tables", "dispose_engine"]
