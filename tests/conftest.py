import datetime as dt

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session

from frequentation.db.session import build_engine, get_session
from frequentation.db.models.typologies import Typologie
from frequentation.db.seed import default_typologies
from frequentation.db.repositories.typologies import TypologieRepository
from frequentation.db.repositories.jours import JourRepository
from frequentation.db.repositories.comptages import ComptageRepository
from frequentation.features.dataset.schemas import JourIn, TypologieCount
from frequentation.features.dataset.services import DatasetService
from frequentation.main import app


@pytest.fixture
def engine():
    # une seule connexion partagée : la base en mémoire survit entre sessions
    engine = build_engine("sqlite://", poolclass=StaticPool, echo=False)
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        session.add_all([Typologie(**t) for t in default_typologies()])
        session.commit()
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def dataset_service(session) -> DatasetService:
    return DatasetService(
        session=session,
        typologie_repo=TypologieRepository(session),
        jour_repo=JourRepository(session),
        comptage_repo=ComptageRepository(session),
    )


@pytest.fixture
def client(engine):
    def override_get_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    # pas de `with` : le startup (init_db sur le fichier SQLite) ne doit pas tourner
    yield TestClient(app)
    app.dependency_overrides.clear()


def make_jour(date, counts, **kwargs) -> JourIn:
    """counts : {typologie_id: count}"""
    return JourIn(
        date=date,
        typologies=[TypologieCount(typologie_id=k, count=v) for k, v in counts.items()],
        **kwargs,
    )


@pytest.fixture
def jour_factory():
    return make_jour


@pytest.fixture
def march_2024():
    return dt.date(2024, 3, 1)
