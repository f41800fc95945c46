from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.orm import aliased

from linkgroups.extensions import db
from linkgroups.models import GROUPABLE_LINK, Group, Groupable


@dataclass
class GroupSummary:
    id: int
    title: str
    parent_group_id: int | None
    child_group_count: int
    link_count: int | None = None

    def as_dict(self):
        payload = {
            "id": self.id,
            "title": self.title,
            "parent_group_id": self.parent_group_id,
            "child_group_count": self.child_group_count,
        }
        if self.link_count is not None:
            payload["link_count"] = self.link_count
        return payload


def _child_group_count_column():
    child = aliased(Group)
    return (
        db.select(db.func.count(child.id))
        .where(child.parent_group_id == Group.id)
        .where(child.user_id == Group.user_id)
        .correlate(Group)
        .scalar_subquery()
    )


def _link_count_column():
    return (
        db.select(db.func.count())
        .select_from(Groupable)
        .where(Groupable.group_id == Group.id)
        .where(Groupable.groupable_type == GROUPABLE_LINK)
        .correlate(Group)
        .scalar_subquery()
    )


def _summaries(owner_id: int, parent_filter=None, include_link_count=True):
    columns = [
        Group.id,
        Group.title,
        Group.parent_group_id,
        _child_group_count_column().label("child_group_count"),
    ]
    if include_link_count:
        columns.append(_link_count_column().label("link_count"))

    stmt = db.select(*columns).where(Group.user_id == owner_id)
    if parent_filter is not None:
        stmt = stmt.where(parent_filter)
    stmt = stmt.order_by(db.func.lower(Group.title), Group.title, Group.id)

    return [
        GroupSummary(
            id=row.id,
            title=row.title,
            parent_group_id=row.parent_group_id,
            child_group_count=row.child_group_count or 0,
            link_count=(row.link_count or 0) if include_link_count else None,
        )
        for row in db.session.execute(stmt)
    ]


def child_summaries(owner_id: int, parent_group_id: int | None) -> list[GroupSummary]:
    if parent_group_id is None:
        parent_filter = Group.parent_group_id.is_(None)
    else:
        parent_filter = Group.parent_group_id == parent_group_id
    return _summaries(owner_id, parent_filter)


def flat_summaries(owner_id: int) -> list[GroupSummary]:
    return _summaries(owner_id, include_link_count=False)
