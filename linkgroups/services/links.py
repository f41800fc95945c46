from __future__ import annotations

from linkgroups.errors import NotFoundError, ValidationError
from linkgroups.extensions import db
from linkgroups.models import GROUPABLE_LINK, Groupable, Link
from linkgroups.services.ownership import get_owned_group


def get_owned_link(owner_id: int, link_id: int) -> Link:
    link = Link.query.filter_by(id=link_id, user_id=owner_id).first()
    if link is None:
        raise NotFoundError("link not found")
    return link


def _groupable(group_id: int, link_id: int) -> Groupable | None:
    return Groupable.query.filter_by(
        group_id=group_id, groupable_type=GROUPABLE_LINK, groupable_id=link_id
    ).first()


def create_link(owner_id: int, title, url, group_ids=()) -> Link:
    clean_url = (url or "").strip() if isinstance(url, str) else ""
    if not clean_url:
        raise ValidationError("link url is required", field="url")

    groups = [get_owned_group(owner_id, group_id) for group_id in group_ids]

    clean_title = (title or "").strip() if isinstance(title, str) else ""
    link = Link(user_id=owner_id, title=clean_title or None, url=clean_url)
    db.session.add(link)
    db.session.flush()

    for group in {group.id: group for group in groups}.values():
        db.session.add(
            Groupable(
                group_id=group.id,
                groupable_type=GROUPABLE_LINK,
                groupable_id=link.id,
            )
        )
    db.session.commit()
    return link


def attach_link(owner_id: int, link_id: int, group_id: int) -> bool:
    link = get_owned_link(owner_id, link_id)
    group = get_owned_group(owner_id, group_id)
    if _groupable(group.id, link.id):
        return False

    db.session.add(
        Groupable(group_id=group.id, groupable_type=GROUPABLE_LINK, groupable_id=link.id)
    )
    db.session.commit()
    return True


def detach_link(owner_id: int, link_id: int, group_id: int) -> bool:
    link = get_owned_link(owner_id, link_id)
    group = get_owned_group(owner_id, group_id)
    row = _groupable(group.id, link.id)
    if row is None:
        return False

    db.session.delete(row)
    db.session.commit()
    return True
