"""
➡️ But : Définir les formats d’entrée/sortie de l’API (couche validation).

Le document échangé avec le front est toujours le jeu de données complet :

{ "jours": [...], "typologies": [...], "version": 1 }

Les mutations sont des actions typées (union discriminée sur le champ `action`),
chacune avec la forme de `data` qui lui est propre.
"""

import datetime as dt
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field, RootModel, field_validator, model_validator

from frequentation.db.models.jours import as_utc

HEX_COLOR_PATTERN = r"^#(?:[0-9a-fA-F]{3}){1,2}$"


# ---------- TYPOLOGIES ----------

class TypologieCreateIn(BaseModel):
    nom: str = Field(..., min_length=1, examples=["Fablab"])
    couleur: str = Field(..., pattern=HEX_COLOR_PATTERN, examples=["#10b981"])
    actif: bool = True
    famille: Optional[str] = Field(None, examples=["Numérique"])

    @field_validator("famille")
    @classmethod
    def blank_famille_is_none(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.strip():
            return None
        return value


class TypologieOut(TypologieCreateIn):
    id: str = Field(..., min_length=1)
    ordre: int

    model_config = {"from_attributes": True}


# ---------- JOURS ----------

class TypologieCount(BaseModel):
    typologie_id: str
    count: int = Field(0, ge=0)


class JourIn(BaseModel):
    date: dt.date = Field(..., examples=["2024-03-01"])
    # ignoré si override_total est faux : le total est recalculé à la sauvegarde
    total_visites: int = Field(0, ge=0)
    override_total: bool = False
    typologies: List[TypologieCount] = Field(default_factory=list)
    note: str = ""
    estimee: bool = False
    derniere_maj: Optional[dt.datetime] = None

    @field_validator("note", mode="before")
    @classmethod
    def none_note_is_empty(cls, value):
        return "" if value is None else value

    @field_validator("derniere_maj")
    @classmethod
    def derniere_maj_in_utc(cls, value: Optional[dt.datetime]) -> Optional[dt.datetime]:
        return as_utc(value) if value is not None else None

    @model_validator(mode="after")
    def one_count_per_typologie(self):
        ids = [c.typologie_id for c in self.typologies]
        if len(ids) != len(set(ids)):
            raise ValueError("Une typologie ne peut apparaître qu'une fois par jour.")
        return self

    def computed_total(self) -> int:
        return sum(c.count for c in self.typologies)


class JourOut(BaseModel):
    date: dt.date
    total_visites: int
    override_total: bool
    typologies: List[TypologieCount]
    note: str
    estimee: bool
    derniere_maj: dt.datetime

    @field_validator("derniere_maj")
    @classmethod
    def derniere_maj_in_utc(cls, value: dt.datetime) -> dt.datetime:
        return as_utc(value)


# ---------- DATASET ----------

class AppData(BaseModel):
    jours: List[JourOut]
    typologies: List[TypologieOut]
    version: int


class AppDataIn(BaseModel):
    """Document importé : même forme que l'export, horodatages optionnels."""
    jours: List[JourIn]
    typologies: List[TypologieOut]
    version: int = Field(..., ge=1)

    @model_validator(mode="after")
    def unique_keys(self):
        dates = [j.date for j in self.jours]
        if len(dates) != len(set(dates)):
            raise ValueError("Une date ne peut apparaître qu'une fois.")
        ids = [t.id for t in self.typologies]
        if len(ids) != len(set(ids)):
            raise ValueError("Identifiants de typologie en double.")
        return self


class FamilleGroupOut(BaseModel):
    famille: str
    typologies: List[TypologieOut]


class MostUsedTypologieOut(BaseModel):
    # None quand aucune typologie n'est active
    typologie_id: Optional[str] = None


# ---------- ACTIONS ----------

class SaveJourAction(BaseModel):
    action: Literal["saveJour"]
    data: JourIn


class DeleteJourAction(BaseModel):
    action: Literal["deleteJour"]
    data: dt.date


class AddTypologieAction(BaseModel):
    action: Literal["addTypologie"]
    data: TypologieCreateIn


class UpdateTypologieAction(BaseModel):
    action: Literal["updateTypologie"]
    data: TypologieOut


class DeleteTypologieAction(BaseModel):
    action: Literal["deleteTypologie"]
    data: str


class ReorderTypologiesAction(BaseModel):
    action: Literal["reorderTypologies"]
    data: List[TypologieOut]


class ImportDataAction(BaseModel):
    action: Literal["importData"]
    data: AppDataIn


DatasetAction = Annotated[
    Union[
        SaveJourAction,
        DeleteJourAction,
        AddTypologieAction,
        UpdateTypologieAction,
        DeleteTypologieAction,
        ReorderTypologiesAction,
        ImportDataAction,
    ],
    Field(discriminator="action"),
]


class DatasetActionIn(RootModel[DatasetAction]):
    """Corps de POST /data : `root` porte l'action typée."""
    pass
