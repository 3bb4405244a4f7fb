"""
Database connection management for Gmail Rule Repair
"""
import os

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from .models import Base

# Get database URL from environment variable
DATABASE_URL = os.getenv('DATABASE_URL', 'sqlite:///rule_repair.db')

# Create engine
engine = create_engine(DATABASE_URL)

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

def init_db(bind: Engine = None) -> None:
    """Initialize the database, creating all tables"""
    Base.metadata.create_all(bind=bind or engine)

def get_db_session() -> Session:
    """Get a new database session"""
    return SessionLocal()
