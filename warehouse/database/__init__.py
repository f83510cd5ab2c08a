from warehouse.database.base import Base
from warehouse.database.engine import build_engine, engine, init_db
from warehouse.database.session import SessionLocal, atomic, get_db

__all__ = ["Base", "SessionLocal", "atomic", "build_engine", "engine", "get_db", "init_db"]
