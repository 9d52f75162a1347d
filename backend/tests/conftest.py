"""Shared fixtures: in-memory database, athletes and an API client."""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from trainload.database import build_engine, create_tables, get_db
from trainload.main import create_app
from trainload.models import Athlete, MetabolicProfile


@pytest.fixture
def db_engine():
    engine = build_engine("sqlite://")
    create_tables(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def athlete(db_session):
    athlete = Athlete(name="Test Rider", ftp=250, threshold_hr=170, weight_kg=70.0)
    db_session.add(athlete)
    db_session.commit()
    db_session.refresh(athlete)
    return athlete


@pytest.fixture
def athlete_with_profile(db_session, athlete):
    db_session.add(MetabolicProfile(athlete_id=athlete.id, bmr=1700, daily_kcal=2500, weight_kg=70.0))
    db_session.commit()
    db_session.refresh(athlete)
    return athlete


@pytest.fixture
def client(session_factory):
    app = create_app()

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)
