"""
➡️ But : Centraliser tous les paramètres configurables (nom d’app, chemin DB, seed, logs, etc.)

Utilise pydantic-settings pour charger automatiquement les variables d’environnement (.env, variables système…).

Fournit un objet settings unique, que tu importes ailleurs :

from frequentation.core.config import settings
print(settings.APP_NAME)


🔹 Avantages :

Plus propre que des constantes éparpillées dans le code.

Facilite le passage entre environnements (dev / prod / test).
"""

from pathlib import Path
from typing import List, Optional

from pydantic_settings import BaseSettings

PACKAGE_DIR = Path(__file__).resolve().parent.parent

# Version du document JSON {jours, typologies, version}
DATASET_VERSION = 1


class Settings(BaseSettings):
    # -----------------------------
    # App
    # -----------------------------
    APP_NAME: str = "Frequentation-Back"
    ENV: str = "dev"  # dev | prod | test
    CORS_ORIGINS: List[str] = ["*"]  # En production, remplacer "*" par l'URL du front

    # -----------------------------
    # Logs
    # -----------------------------
    LOG_LEVEL: Optional[str] = None  # auto selon ENV si None

    # -----------------------------
    # DB
    # -----------------------------
    SQLITE_PATH: str = "data/frequentation.db"  # fichier SQLite
    # Si tu veux forcer une URL différente (ex: Postgres), définis DATABASE_URL dans l'env.
    DATABASE_URL: Optional[str] = None

    # -----------------------------
    # Seed
    # -----------------------------
    SEED_PATH: str = str(PACKAGE_DIR / "db" / "seed_data.yaml")
    SEED_ON_EMPTY: bool = True       # typologies par défaut au premier démarrage
    SEED_DEMO_DATA: bool = True      # + jours de démonstration
    SEED_DEMO_DAYS: int = 30         # fenêtre glissante des jours de démo

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
    }

    # -----------------------------
    # Post-process values
    # -----------------------------
    def model_post_init(self, __context): # appelée automatiquement
        # DATABASE_URL par défaut depuis SQLITE_PATH si non fourni
        if not self.DATABASE_URL:
            object.__setattr__(self, "DATABASE_URL", f"sqlite:///{self.SQLITE_PATH}")

        # niveau de log auto : verbeux en dev
        if self.LOG_LEVEL is None:
            object.__setattr__(self, "LOG_LEVEL", "DEBUG" if self.ENV == "dev" else "INFO")


# Instance globale importable partout
settings = Settings()
