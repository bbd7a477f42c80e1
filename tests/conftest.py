import pytest
from sqlalchemy import StaticPool
from sqlalchemy.orm import sessionmaker

from duekeeper.database import Base, init_db, make_engine

engine = make_engine("sqlite:///:memory:", poolclass=StaticPool)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(autouse=True)
def setup_db():
    init_db(engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session():
    """Provide a database session for tests that persist cards and benefits."""
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
