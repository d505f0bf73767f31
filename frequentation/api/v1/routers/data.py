"""
➡️ But : Définir les endpoints du jeu de données.

C’est la couche la plus proche du web :

Réceptionne les requêtes HTTP (GET, POST)

Appelle DatasetService

Retourne toujours le jeu de données complet {jours, typologies, version}

🔹 Les actions de mutation forment un ensemble fermé (union discriminée sur `action`) :
une action inconnue est refusée à la validation (422), avant tout accès à la base.
"""

import datetime as dt
from typing import List

from fastapi import APIRouter, Body, Depends, HTTPException, Request, Response, status

from frequentation.api.v1.dependencies import get_dataset_service
from frequentation.features.dataset.schemas import AppData, DatasetActionIn, FamilleGroupOut, JourOut, MostUsedTypologieOut
from frequentation.features.dataset.services import DatasetService, DatasetFormatError, StorageError

router = APIRouter(
    prefix="/data",
    tags=["data"],
    responses={500: {"description": "Storage failure"}},
)


# -----------------------------
# Lecture
# -----------------------------
@router.get(
    "",
    summary="Récupérer le jeu de données complet",
    response_model=AppData,
)
def get_all(svc: DatasetService = Depends(get_dataset_service)):
    try:
        return svc.get_all()
    except StorageError:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to fetch data")


@router.get(
    "/jours/{date}",
    summary="Récupérer la saisie d'un jour",
    response_model=JourOut,
    responses={404: {"description": "Not Found"}},
)
def get_jour(date: dt.date, svc: DatasetService = Depends(get_dataset_service)):
    try:
        return svc.get_jour(date)
    except LookupError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")
    except StorageError:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to fetch data")


@router.get(
    "/jours/{date}/veille",
    summary="Récupérer la saisie de la veille (pré-remplissage)",
    response_model=JourOut,
    responses={404: {"description": "Aucune donnée la veille"}},
)
def get_previous_jour(date: dt.date, svc: DatasetService = Depends(get_dataset_service)):
    try:
        return svc.previous_jour(date)
    except LookupError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")
    except StorageError:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to fetch data")


@router.get(
    "/typologies/familles",
    summary="Typologies regroupées par famille",
    response_model=List[FamilleGroupOut],
)
def list_familles(svc: DatasetService = Depends(get_dataset_service)):
    try:
        return svc.typologies_by_famille()
    except StorageError:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to fetch data")


@router.get(
    "/typologies/plus-utilisee",
    summary="Typologie active la plus saisie (raccourci de saisie)",
    response_model=MostUsedTypologieOut,
)
def most_used_typologie(svc: DatasetService = Depends(get_dataset_service)):
    try:
        return MostUsedTypologieOut(typologie_id=svc.most_used_typologie())
    except StorageError:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to fetch data")


# -----------------------------
# Actions
# -----------------------------
@router.post(
    "",
    summary="Appliquer une action et renvoyer le jeu de données mis à jour",
    response_model=AppData,
    responses={
        404: {"description": "Typologie inconnue"},
        422: {"description": "Action inconnue ou données invalides"},
    },
)
def apply_action(
    payload: DatasetActionIn = Body(..., examples=[{"action": "deleteJour", "data": "2024-03-01"}]),
    svc: DatasetService = Depends(get_dataset_service),
):
    try:
        return svc.dispatch(payload.root)
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except DatasetFormatError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except StorageError:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to update data")


# -----------------------------
# Import / export
# -----------------------------
@router.get(
    "/export",
    summary="Exporter le jeu de données (JSON)",
    response_class=Response,
    responses={200: {"content": {"application/json": {}}}},
)
def export_data(svc: DatasetService = Depends(get_dataset_service)):
    try:
        content = svc.export_dataset()
    except StorageError:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to fetch data")
    filename = f"frequentation_{dt.date.today().isoformat()}.json"
    return Response(
        content=content,
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post(
    "/import",
    summary="Importer un jeu de données (remplacement complet)",
    response_model=AppData,
    responses={400: {"description": "Document invalide, rien n'a été modifié"}},
)
async def import_data(request: Request, svc: DatasetService = Depends(get_dataset_service)):
    body = await request.body()
    try:
        return svc.import_dataset(body)
    except DatasetFormatError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except StorageError:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to update data")


@router.post(
    "/reset",
    summary="Réinitialiser avec les données de démonstration",
    response_model=AppData,
)
def reset_data(svc: DatasetService = Depends(get_dataset_service)):
    try:
        return svc.reset_to_seed()
    except StorageError:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to update data")


@router.post(
    "/clear",
    summary="Effacer toutes les saisies (typologies par défaut conservées)",
    response_model=AppData,
)
def clear_data(svc: DatasetService = Depends(get_dataset_service)):
    try:
        return svc.clear_all()
    except StorageError:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to update data")
