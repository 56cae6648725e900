import os

# Point the app at an in-memory database before anything imports database.py
os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from fastapi.testclient import TestClient

import database
import groups
import models
from main import app


@pytest.fixture(autouse=True)
def schema():
    models.Base.metadata.create_all(bind=database.engine)
    yield
    models.Base.metadata.drop_all(bind=database.engine)


@pytest.fixture
def db():
    session = database.SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture
def trip(db):
    """Group with three members: Ana, Ben and Cy, in that order."""
    return groups.create_group(
        db,
        "Lisbon trip",
        ["ana@splitledger.io", "ben@splitledger.io", "cy@splitledger.io"],
    )


@pytest.fixture
def members(trip):
    ana, ben, cy = trip.members
    return ana.id, ben.id, cy.id
