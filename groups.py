# groups.py
"""Just enough group handling for the expense engine: create, look up, list members."""

import logging
import re
from typing import Iterable, List

from sqlalchemy.orm import Session

import models
from database import atomic
from errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)


def member_name_from_email(email: str) -> str:
    """'jane.doe@x.io' -> 'Jane Doe'."""
    local_part = email.split("@")[0]
    segments = [s for s in re.split(r"[._-]+", local_part) if s]
    name = " ".join(s[:1].upper() + s[1:] for s in segments).strip()
    return name or "Friend"


def create_group(db: Session, name: str, invitees: Iterable[str]) -> models.Group:
    name = (name or "").strip()
    # Keep first occurrence order while dropping blanks and repeats.
    unique_invitees: List[str] = []
    for invitee in invitees or []:
        email = str(invitee).strip() if invitee is not None else ""
        if email and email not in unique_invitees:
            unique_invitees.append(email)

    if not name:
        raise ValidationError("Group name is required")
    if not unique_invitees:
        raise ValidationError("Invite at least one member")

    with atomic(db):
        group = models.Group(name=name)
        group.members.extend(
            models.Member(name=member_name_from_email(email), email=email) for email in unique_invitees
        )
        db.add(group)
    db.refresh(group)
    logger.info("Created group %s (%s) with %d members", group.id, group.name, len(unique_invitees))
    return group


def get_group(db: Session, group_id: int) -> models.Group:
    group = db.query(models.Group).filter(models.Group.id == group_id).first()
    if group is None:
        raise NotFoundError(f"Group {group_id} not found")
    return group


def list_groups(db: Session) -> List[models.Group]:
    return db.query(models.Group).order_by(models.Group.id).all()


def member_ids(db: Session, group_id: int) -> List[int]:
    """Member ids of a group in membership order (ascending id)."""
    rows = (
        db.query(models.Member.id)
        .filter(models.Member.group_id == group_id)
        .order_by(models.Member.id)
        .all()
    )
    return [row[0] for row in rows]
