from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from booking_pricing.core.config import settings

# SQLite connections are shared across the request threads FastAPI uses.
connect_args = {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(settings.DATABASE_URL, pool_pre_ping=True, connect_args=connect_args)

# One session per request; see api.deps.get_db.
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
