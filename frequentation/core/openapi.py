"""
➡️ But : Personnaliser la documentation Swagger/OpenAPI.

custom_openapi(app) modifie le schéma généré par FastAPI pour :

ajouter un titre, une description détaillée,

documenter les conventions du document de données (jours, typologies, version),

centraliser la personnalisation du Swagger.
"""

from fastapi.openapi.utils import get_openapi


def custom_openapi(app):
    if app.openapi_schema:
        return app.openapi_schema
    openapi_schema = get_openapi(
        title=app.title,
        version=app.version,
        description=(
            "API de suivi de fréquentation d'un tiers-lieu (FastAPI + SQLite).\n\n"
            "### Conventions\n"
            "- Les dates sont au format `YYYY-MM-DD`, les horodatages en UTC.\n"
            "- Toute mutation renvoie le jeu de données complet `{jours, typologies, version}`.\n"
            "- Les semaines commencent le lundi ; aucune analyse ne dépasse la date du jour.\n"
        ),
        routes=app.routes,
    )
    app.openapi_schema = openapi_schema
    return app.openapi_schema
