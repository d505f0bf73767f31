"""
➡️ But : Configurer la base SQLite et gérer les sessions de base de données.

engine : connexion à la base SQLite (sqlite:///data/frequentation.db).

init_db() : crée les tables à partir des modèles SQLModel, puis seed les typologies par défaut si la base est vide.

get_session() : dépendance FastAPI qui ouvre une session, la fournit aux routes, puis la ferme proprement.

🔹 Avantages :

Un seul endroit pour gérer les connexions DB.

Réutilisable par injection (Depends(get_session)).
"""

import logging
from pathlib import Path
from typing import Dict, Any, Optional

from sqlmodel import SQLModel, create_engine, Session
from sqlalchemy import event
from sqlalchemy.engine import Engine

# Import all models for creating all tables
from frequentation.db.models.typologies import Typologie
from frequentation.db.models.jours import Jour
from frequentation.db.models.comptages import Comptage

from frequentation.core.config import settings
from frequentation.db.seed import seed_if_empty

logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(url: Optional[str] = None, **kwargs: Any) -> Engine:
    url = url or settings.DATABASE_URL
    assert url, "DATABASE_URL must be set"

    is_sqlite = url.startswith("sqlite:")

    connect_args: Dict[str, Any] = {}
    if is_sqlite:
        # Requis pour SQLite quand utilisé dans un app serveur (multi-threads)
        connect_args["check_same_thread"] = False

    # echo seulement en dev pour ne pas polluer les logs en prod
    engine = create_engine(
        url,
        echo=kwargs.pop("echo", settings.ENV == "dev"),
        connect_args=connect_args,
        pool_pre_ping=not is_sqlite,  # ping utile pour Postgres/MySQL ; inutile pour SQLite
        **kwargs,
    )
    if is_sqlite:
        # SQLite ignore les FOREIGN KEY tant que le pragma n'est pas activé
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine

engine: Engine = build_engine()

def init_db(bind: Optional[Engine] = None) -> None:
    """
    Crée les tables si elles n'existent pas, puis seed au premier démarrage.
    En prod avec Alembic, préfère des migrations.
    """
    bind = bind or engine
    db_file = bind.url.database if bind.url.get_backend_name() == "sqlite" else None
    if db_file and db_file != ":memory:":
        Path(db_file).parent.mkdir(parents=True, exist_ok=True)

    SQLModel.metadata.create_all(bind)
    if settings.SEED_ON_EMPTY:
        with Session(bind) as session:
            seed_if_empty(session)
    logger.info("Base prête (%s)", bind.url)


def get_session():
    """
    Dépendance FastAPI : fournit une session par requête.
    Utilisation :
        def route(..., session: Session = Depends(get_session)):
            ...
    """
    with Session(engine) as session:
        yield session
