from __future__ import annotations

from collections import deque
from dataclasses import dataclass

from flask import current_app

from linkgroups.errors import CycleDetectedError
from linkgroups.extensions import db
from linkgroups.models import Group
from linkgroups.services.counts import GroupSummary, child_summaries
from linkgroups.services.ownership import find_owned_group, owned_group_count


@dataclass
class Breadcrumb:
    title: str
    link: str

    def as_dict(self):
        return {"title": self.title, "link": self.link}


def get_ancestor_chain(group: Group) -> list[Breadcrumb]:
    """Return the ancestors of ``group``, root first, excluding the group."""
    max_depth = owned_group_count(group.user_id)
    chain: list[Breadcrumb] = []
    seen: set[int] = {group.id}

    cursor = group
    while cursor.parent_group_id is not None:
        parent = find_owned_group(group.user_id, cursor.parent_group_id)
        if parent is None:
            break
        if parent.id in seen or len(chain) >= max_depth:
            current_app.logger.error(
                "Cycle detected in group tree of user %s while resolving "
                "ancestors of group %s (repeated group %s)",
                group.user_id,
                group.id,
                parent.id,
            )
            raise CycleDetectedError("group tree contains a cycle")
        seen.add(parent.id)
        chain.append(Breadcrumb(title=parent.title, link=parent.url))
        cursor = parent

    chain.reverse()
    return chain


def get_children(group: Group) -> list[GroupSummary]:
    return child_summaries(group.user_id, group.id)


def get_descendant_ids(group: Group) -> list[int]:
    rows = db.session.execute(
        db.select(Group.id, Group.parent_group_id).where(
            Group.user_id == group.user_id
        )
    )
    children_by_parent: dict[int | None, list[int]] = {}
    for row in rows:
        children_by_parent.setdefault(row.parent_group_id, []).append(row.id)

    ordered: list[int] = []
    seen: set[int] = {group.id}
    queue = deque(children_by_parent.get(group.id, []))
    while queue:
        current_id = queue.popleft()
        if current_id in seen:
            continue
        seen.add(current_id)
        ordered.append(current_id)
        queue.extend(children_by_parent.get(current_id, []))
    return ordered
