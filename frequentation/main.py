"""
➡️ But : assembler toutes les pièces du puzzle.

Crée l’instance FastAPI (app).

Configure :

les logs

CORS (autorisations de qui peut appeler ces API)

titre, version, tags

schéma OpenAPI personnalisé

Inclut les routers (ex : /api/v1/data).

Initialise la base SQLite au démarrage (création des tables + seed si vide).

🔹 Avantages :

Centralise la configuration du serveur HTTP.

Point unique d’exécution : uvicorn frequentation.main:app --reload.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from frequentation.core.config import settings
from frequentation.core.logging import configure_logging
from frequentation.core.openapi import custom_openapi
from frequentation.db.session import init_db

from frequentation.api.v1.routers import data, analytics, calendar

import uvicorn

configure_logging()


app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    openapi_tags=[
        {"name": "data", "description": "Jeu de données : jours, typologies, import/export"},
        {"name": "analytics", "description": "Indicateurs, séries et insights par période"},
        {"name": "calendar", "description": "Vue calendrier mensuelle"},
    ],
)

# CORS (ajustez selon vos besoins)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS, allow_credentials=True,
    allow_methods=["*"], allow_headers=["*"],
)

# Routers
app.include_router(data.router, prefix="/api/v1")
app.include_router(analytics.router, prefix="/api/v1")
app.include_router(calendar.router, prefix="/api/v1")

# Génération du schéma OpenAPI custom (facultatif, mais propre)
app.openapi = lambda: custom_openapi(app)

# Démarrage
@app.on_event("startup")
def on_startup():
    init_db()

if __name__ == "__main__":
    uvicorn.run("frequentation.main:app", host="127.0.0.1", port=8080, reload=(settings.ENV == "dev")) # http://localhost:8080
