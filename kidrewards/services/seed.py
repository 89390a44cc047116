"""Demo data for an empty database: two parents, the first one owning two kids."""
from sqlalchemy import select
from sqlalchemy.orm import Session
import logging

from ..models.kid import Kid
from ..models.parent import Parent
from .identity_service import create_parent
from .kid_service import create_kid

logger = logging.getLogger(__name__)

DEMO_PASSWORD = "ChangeMe123!"
DEMO_PARENTS = ("parent1", "parent2")
DEMO_KIDS = ("Kid 1", "Kid 2")


def seed_demo_data(db: Session) -> None:
    if db.execute(select(Parent.id).limit(1)).first() is None:
        for username in DEMO_PARENTS:
            create_parent(db, username=username, password=DEMO_PASSWORD)
        logger.info(f"Seeded demo parents: {', '.join(DEMO_PARENTS)}")

    if db.execute(select(Kid.id).limit(1)).first() is None:
        first_parent_id = db.execute(select(Parent.id).order_by(Parent.created_at).limit(1)).scalar_one_or_none()
        if not first_parent_id:
            logger.info("No parents found; skipping kid seed.")
            return
        for name in DEMO_KIDS:
            create_kid(db, parent_id=first_parent_id, display_name=name)
        logger.info(f"Seeded demo kids for parent {first_parent_id}")
