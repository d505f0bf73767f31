"""
Seed manuel de la base : python scripts/seed.py [--reset]

Sans option : typologies par défaut (+ jours de démo) uniquement si la base est vide.
--reset : remplace tout par les données de démonstration.
"""

import argparse

from frequentation.core.logging import configure_logging
from frequentation.db.session import engine, Session, init_db

from frequentation.db.repositories.typologies import TypologieRepository
from frequentation.db.repositories.jours import JourRepository
from frequentation.db.repositories.comptages import ComptageRepository
from frequentation.features.dataset.services import DatasetService


def run_seed(reset: bool = False) -> None:
    configure_logging()
    init_db()
    if not reset:
        return
    with Session(engine) as session:
        svc = DatasetService(
            session=session,
            typologie_repo=TypologieRepository(session),
            jour_repo=JourRepository(session),
            comptage_repo=ComptageRepository(session),
        )
        data = svc.reset_to_seed()
        print(f"✅ Reset : {len(data.jours)} jours, {len(data.typologies)} typologies.")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed de la base de fréquentation")
    parser.add_argument("--reset", action="store_true", help="remplacer toutes les données par la démo")
    args = parser.parse_args()
    run_seed(reset=args.reset)
