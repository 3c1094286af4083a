from typing import Dict, List

from sqlalchemy.orm import Session
from serenity.activities.models import Activity


def get_activities(db: Session, limit: int = 50) -> List[Activity]:
    return db.query(Activity).order_by(Activity.name).limit(limit).all()


def recommend_activities(activities: List[Activity], dominant_moods: List[str], limit: int = 3) -> List[Activity]:
    """
    Picks activities whose mood tags overlap the dominant moods, strongest
    overlap first. Ties keep catalog order.
    """
    moods = {m.lower() for m in dominant_moods}
    if not moods:
        return []
    scored: List[tuple] = []
    for index, activity in enumerate(activities):
        overlap = len(moods & {t.lower() for t in (activity.mood_tags or [])})
        if overlap:
            scored.append((-overlap, index, activity))
    scored.sort(key=lambda item: (item[0], item[1]))
    return [activity for _, _, activity in scored[:limit]]


def seed_activities(db: Session, catalog: List[Dict]) -> int:
    """Inserts catalog activities whose names are not stored yet. Returns count added."""
    existing = {name for (name,) in db.query(Activity.name).all()}
    added = 0
    for item in catalog:
        if item["name"] in existing:
            continue
        db.add(Activity(**item))
        added += 1
    db.commit()
    return added
