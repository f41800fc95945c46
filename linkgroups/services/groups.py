from __future__ import annotations

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from linkgroups.errors import (
    ParentReferenceError,
    SelfReferenceError,
    ValidationError,
)
from linkgroups.extensions import db
from linkgroups.models import GROUPABLE_LINK, Group, Groupable, Link
from linkgroups.services.cascade import CascadeResult, cascade_delete, check_reparent
from linkgroups.services.counts import GroupSummary, child_summaries, flat_summaries
from linkgroups.services.ownership import find_owned_group, get_owned_group
from linkgroups.services.tree import get_ancestor_chain, get_children

TITLE_MIN_LENGTH = 3
TITLE_MAX_LENGTH = 255


def validate_title(title) -> str:
    if not isinstance(title, str):
        raise ValidationError("title is required")
    value = title.strip()
    if len(value) < TITLE_MIN_LENGTH:
        raise ValidationError(
            f"title must be at least {TITLE_MIN_LENGTH} characters"
        )
    if len(value) > TITLE_MAX_LENGTH:
        raise ValidationError(
            f"title must be at most {TITLE_MAX_LENGTH} characters"
        )
    return value


def create_group(owner_id: int, title, parent_group_id: int | None = None) -> Group:
    clean_title = validate_title(title)
    if parent_group_id is not None:
        if find_owned_group(owner_id, parent_group_id) is None:
            raise ParentReferenceError("parent group not found")

    group = Group(user_id=owner_id, title=clean_title, parent_group_id=parent_group_id)
    db.session.add(group)
    db.session.commit()
    return group


def update_group(
    owner_id: int, group_id: int, title, parent_group_id: int | None = None
) -> Group:
    # A self-parent request keeps the current parent; the title still changes.
    group = get_owned_group(owner_id, group_id)
    clean_title = validate_title(title)

    try:
        parent = check_reparent(group, parent_group_id)
    except SelfReferenceError:
        current_app.logger.debug(
            "Ignoring self-parent request for group %s", group.id
        )
    else:
        group.parent_group_id = parent.id if parent is not None else None

    group.title = clean_title
    db.session.commit()
    return group


def delete_group(owner_id: int, group_id: int) -> CascadeResult:
    group = get_owned_group(owner_id, group_id)
    try:
        result = cascade_delete(group)
        db.session.delete(group)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        raise

    current_app.logger.info(
        "Deleted group %s for user %s (%s children reparented, %s links detached)",
        group_id,
        owner_id,
        result.reparented_groups,
        result.detached_links,
    )
    return result


def list_children(owner_id: int, parent_group_id: int | None) -> list[GroupSummary]:
    return child_summaries(owner_id, parent_group_id)


def list_root_groups(owner_id: int) -> list[GroupSummary]:
    return child_summaries(owner_id, None)


def list_all(owner_id: int) -> list[GroupSummary]:
    return flat_summaries(owner_id)


def get_group_page(owner_id: int, group_id: int, page: int = 1) -> dict:
    group = get_owned_group(owner_id, group_id)

    links_stmt = (
        db.select(Link)
        .join(
            Groupable,
            db.and_(
                Groupable.groupable_id == Link.id,
                Groupable.groupable_type == GROUPABLE_LINK,
            ),
        )
        .where(Groupable.group_id == group.id)
        .where(Link.user_id == owner_id)
        .order_by(Link.created_at.desc(), Link.id.desc())
    )
    links = db.paginate(
        links_stmt,
        page=max(page, 1),
        per_page=current_app.config["LINKS_PER_PAGE"],
        error_out=False,
    )

    return {
        "group": {
            "id": group.id,
            "title": group.title,
            "parent_group_id": group.parent_group_id,
        },
        "children": [summary.as_dict() for summary in get_children(group)],
        "ancestor_chain": [crumb.as_dict() for crumb in get_ancestor_chain(group)],
        "links": {
            "items": [
                {"id": link.id, "title": link.title, "url": link.url}
                for link in links.items
            ],
            "page": links.page,
            "per_page": links.per_page,
            "total": links.total,
            "pages": links.pages,
        },
    }
