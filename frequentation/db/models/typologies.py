"""Table des typologies de visiteurs (ex: 'Fablab', 'Coworking')."""

from typing import Optional
from uuid import uuid4

from sqlmodel import SQLModel, Field


def new_typologie_id() -> str:
    return uuid4().hex


class Typologie(SQLModel, table=True):
    # Identifiant texte stable : "1".."5" pour les typologies par défaut, uuid sinon
    id: str = Field(default_factory=new_typologie_id, primary_key=True)

    nom: str = Field(index=True, description="Nom affiché (ex: 'Fablab')")
    couleur: str = Field(max_length=7, description="Code couleur hexadécimal #RRGGBB ou #RGB")
    actif: bool = Field(default=True, description="Les typologies inactives sont exclues de la saisie et des analyses")
    ordre: int = Field(default=1, index=True, description="Ordre d'affichage (1 = premier)")
    famille: Optional[str] = Field(default=None, description="Regroupement libre (ex: 'Créatif')")
