from slotline.db.base import Base
from slotline.db.session import SessionLocal, engine, get_db, transaction
from slotline.db.tables import ALL_TABLE_NAMES

__all__ = ["get_db", "engine", "SessionLocal", "Base", "transaction", "ALL_TABLE_NAMES"]
