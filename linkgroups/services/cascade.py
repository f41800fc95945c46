from __future__ import annotations

from dataclasses import dataclass

from flask import current_app
from sqlalchemy import or_
from sqlalchemy.orm import aliased

from linkgroups.errors import ParentReferenceError, SelfReferenceError
from linkgroups.extensions import db
from linkgroups.models import TAGGABLE_GROUP, Group, Groupable, Taggable
from linkgroups.services.ownership import find_owned_group, owned_groups
from linkgroups.services.tree import get_descendant_ids


@dataclass
class CascadeResult:
    reparented_groups: int = 0
    detached_links: int = 0
    detached_tags: int = 0

    def as_dict(self):
        return {
            "reparented_groups": self.reparented_groups,
            "detached_links": self.detached_links,
            "detached_tags": self.detached_tags,
        }


def check_reparent(group: Group, parent_group_id: int | None) -> Group | None:
    if parent_group_id is None:
        return None
    if parent_group_id == group.id:
        raise SelfReferenceError("a group cannot be its own parent")

    parent = find_owned_group(group.user_id, parent_group_id)
    if parent is None:
        raise ParentReferenceError("parent group not found")
    if parent.id in set(get_descendant_ids(group)):
        raise ParentReferenceError("a group cannot be moved inside its own subtree")
    return parent


def cascade_delete(group: Group) -> CascadeResult:
    new_parent_id = group.parent_group_id
    if new_parent_id == group.id:
        new_parent_id = None
    elif find_owned_group(group.user_id, new_parent_id) is None:
        new_parent_id = None
    elif new_parent_id in set(get_descendant_ids(group)):
        new_parent_id = None

    result = CascadeResult()
    children = (
        owned_groups(group.user_id)
        .filter(Group.parent_group_id == group.id)
        .filter(Group.id != group.id)
        .all()
    )
    for child in children:
        child.parent_group_id = new_parent_id
        result.reparented_groups += 1

    result.detached_links = Groupable.query.filter_by(group_id=group.id).delete()
    result.detached_tags = Taggable.query.filter_by(
        taggable_type=TAGGABLE_GROUP, taggable_id=group.id
    ).delete()

    db.session.flush()
    return result


def repair_orphans(owner_id: int | None = None) -> int:
    """Move groups with a dangling, foreign or self parent to the root."""
    parent = aliased(Group)
    query = (
        Group.query.outerjoin(parent, Group.parent_group_id == parent.id)
        .filter(Group.parent_group_id.is_not(None))
        .filter(
            or_(
                parent.id.is_(None),
                parent.user_id != Group.user_id,
                Group.parent_group_id == Group.id,
            )
        )
    )
    if owner_id is not None:
        query = query.filter(Group.user_id == owner_id)

    orphans = query.all()
    for group in orphans:
        current_app.logger.info(
            "Moving orphaned group %s (user %s) from missing parent %s to root",
            group.id,
            group.user_id,
            group.parent_group_id,
        )
        group.parent_group_id = None

    if orphans:
        db.session.commit()
    return len(orphans)
