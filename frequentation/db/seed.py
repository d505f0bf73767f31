import datetime as dt
import logging
import random
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from sqlmodel import Session, select

from frequentation.core.config import settings
from frequentation.db.models.typologies import Typologie
from frequentation.db.models.jours import Jour, utc_now
from frequentation.db.models.comptages import Comptage

logger = logging.getLogger(__name__)

# -----------------------------
# YAML loader
# -----------------------------
def load_seed_yaml(seed_path: str | Path | None = None) -> Dict[str, Any]:
    path = Path(seed_path or settings.SEED_PATH)
    if not path.exists():
        raise FileNotFoundError(f"Seed YAML introuvable: {path}")

    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError("Le YAML de seed doit contenir un objet racine (mapping).")
    return data

# -----------------------------
# Builders (données pures, sans session)
# -----------------------------
def default_typologies(data: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
    """Typologies par défaut (clé YAML `typologies:`), triées par ordre."""
    data = data if data is not None else load_seed_yaml()
    typologies: List[Dict[str, Any]] = data.get("typologies", [])
    out = [
        {
            "id": str(t["id"]),
            "nom": t["nom"],
            "couleur": t["couleur"],
            "actif": bool(t.get("actif", True)),
            "ordre": int(t["ordre"]),
            "famille": t.get("famille"),
        }
        for t in typologies
    ]
    return sorted(out, key=lambda t: t["ordre"])

def generate_demo_jours(
    typologies: List[Dict[str, Any]],
    *,
    today: Optional[dt.date] = None,
    days: Optional[int] = None,
    rng: Optional[random.Random] = None,
) -> List[Dict[str, Any]]:
    """
    Jours de démonstration sur les `days` derniers jours (aujourd'hui inclus).
    - ~15 % des jours sont sautés (trous dans les données)
    - chaque typologie reçoit 1..15 visiteurs, total = somme
    - note "Journée normale" de temps en temps (jamais aujourd'hui), ~10 % estimés
    """
    today = today or dt.date.today()
    days = settings.SEED_DEMO_DAYS if days is None else days
    rng = rng or random.Random()
    now = utc_now()

    jours: List[Dict[str, Any]] = []
    for i in range(days, -1, -1):
        date = today - dt.timedelta(days=i)

        if rng.random() > 0.85:
            continue

        counts = [
            {"typologie_id": t["id"], "count": rng.randint(1, 15)}
            for t in typologies
        ]
        jours.append({
            "date": date,
            "total_visites": sum(c["count"] for c in counts),
            "override_total": False,
            "typologies": counts,
            "note": "" if i == 0 else ("Journée normale" if rng.random() > 0.7 else ""),
            "estimee": rng.random() > 0.9,
            "derniere_maj": now,
        })
    return jours

# -----------------------------
# Seed Typologies
# -----------------------------
def seed_typologies(session: Session, data: Dict[str, Any]) -> List[Dict[str, Any]]:
    if session.exec(select(Typologie)).first():
        logger.info("ℹ️ Les typologies existent déjà, aucune insertion effectuée.")
        return []

    typologies = default_typologies(data)
    if not typologies:
        logger.warning("⚠️ Aucune typologie dans le YAML (clé 'typologies').")
        return []

    session.add_all([Typologie(**t) for t in typologies])
    session.commit()
    logger.info("✅ %d typologies insérées.", len(typologies))
    return typologies

# -----------------------------
# Seed Jours (démo)
# -----------------------------
def seed_demo_jours(session: Session, typologies: List[Dict[str, Any]]) -> None:
    if session.exec(select(Jour)).first():
        logger.info("ℹ️ Des jours existent déjà, aucune donnée de démo insérée.")
        return

    jours = generate_demo_jours(typologies)
    for j in jours:
        session.add(Jour(
            date=j["date"],
            total_visites=j["total_visites"],
            override_total=j["override_total"],
            note=j["note"],
            estimee=j["estimee"],
            derniere_maj=j["derniere_maj"],
        ))
    # les jours doivent exister avant leurs comptages (FK)
    session.flush()
    for j in jours:
        session.add_all([
            Comptage(date=j["date"], typologie_id=c["typologie_id"], count=c["count"])
            for c in j["typologies"]
        ])
    session.commit()
    logger.info("✅ %d jours de démonstration insérés.", len(jours))

# -----------------------------
# Main entrypoint
# -----------------------------
def seed_if_empty(session: Session, seed_path: str | Path | None = None) -> None:
    """
    Initialisation paresseuse : ne fait quelque chose que si la table des typologies est vide,
    donc une seule fois pour la durée de vie de la base.
    """
    data = load_seed_yaml(seed_path)

    typologies = seed_typologies(session, data)
    if typologies and settings.SEED_DEMO_DATA:
        seed_demo_jours(session, typologies)
