from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session

from dayos.config.settings import Settings

DATABASE_URL = Settings.DATABASE['url']

# Keep sslmode=require for hosted PostgreSQL; SQLite needs cross-thread access instead
if DATABASE_URL.startswith("postgres"):
    connect_args = {"sslmode": "require"}
elif DATABASE_URL.startswith("sqlite"):
    connect_args = {"check_same_thread": False}
else:
    connect_args = {}

engine = create_engine(DATABASE_URL, connect_args=connect_args)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

# Used as a FastAPI dependency wherever a request-scoped session is needed
def get_db():
    db: Session = SessionLocal()
    try:
        yield db
    finally:
        db.close()
