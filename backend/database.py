# backend/database.py
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from config import settings

# 1. Address from the environment (.env / deployment) or the local SQLite default
SQLALCHEMY_DATABASE_URL = settings.DATABASE_URL

# 2. SQLAlchemy expects postgresql://, some hosts still hand out postgres://
if SQLALCHEMY_DATABASE_URL and SQLALCHEMY_DATABASE_URL.startswith("postgres://"):
    SQLALCHEMY_DATABASE_URL = SQLALCHEMY_DATABASE_URL.replace("postgres://", "postgresql://", 1)


def engine_kwargs(url: str) -> dict:
    # check_same_thread only applies to SQLite
    if "sqlite" in url:
        return {"connect_args": {"check_same_thread": False}}
    return {}


engine = create_engine(SQLALCHEMY_DATABASE_URL, **engine_kwargs(SQLALCHEMY_DATABASE_URL))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def init_db():
    # Register every mapped table before create_all
    import models.category, models.supplier, models.customer  # noqa: F401
    import models.product, models.stock, models.order, models.alert, models.log  # noqa: F401
    Base.metadata.create_all(bind=engine)
