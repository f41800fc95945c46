from __future__ import annotations

from linkgroups.errors import NotFoundError
from linkgroups.models import Group


def owned_groups(owner_id: int):
    return Group.query.filter_by(user_id=owner_id)


def find_owned_group(owner_id: int, group_id: int | None) -> Group | None:
    if group_id is None:
        return None
    return owned_groups(owner_id).filter_by(id=group_id).first()


def get_owned_group(owner_id: int, group_id: int) -> Group:
    group = find_owned_group(owner_id, group_id)
    if group is None:
        raise NotFoundError("group not found")
    return group


def owned_group_count(owner_id: int) -> int:
    return owned_groups(owner_id).count()
