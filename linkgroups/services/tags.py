from __future__ import annotations

from linkgroups.errors import NotFoundError, ValidationError
from linkgroups.extensions import db
from linkgroups.models import TAGGABLE_GROUP, TAGGABLE_LINK, Group, Link, Tag, Taggable
from linkgroups.services.common import parse_tags

TAGGABLE_MODELS = {TAGGABLE_LINK: Link, TAGGABLE_GROUP: Group}


def _require_taggable(owner_id: int, taggable_type: str, taggable_id: int):
    model = TAGGABLE_MODELS.get(taggable_type)
    if model is None:
        raise ValidationError("unknown taggable type", field="taggable_type")
    row = model.query.filter_by(id=taggable_id, user_id=owner_id).first()
    if row is None:
        raise NotFoundError(f"{taggable_type} not found")
    return row


def set_tags(owner_id: int, taggable_type: str, taggable_id: int, tags_input) -> list[str]:
    _require_taggable(owner_id, taggable_type, taggable_id)
    if isinstance(tags_input, list):
        names = parse_tags(
            ",".join(str(item) for item in tags_input if item is not None)
        )
    else:
        names = parse_tags(tags_input or "")

    Taggable.query.filter_by(
        taggable_type=taggable_type, taggable_id=taggable_id
    ).delete()

    for name in names:
        tag = Tag.query.filter_by(user_id=owner_id, name=name).first()
        if not tag:
            tag = Tag(user_id=owner_id, name=name)
            db.session.add(tag)
            db.session.flush()
        db.session.add(
            Taggable(tag_id=tag.id, taggable_type=taggable_type, taggable_id=taggable_id)
        )

    db.session.commit()
    return names


def tags_for(taggable_type: str, taggable_id: int) -> list[Tag]:
    return (
        Tag.query.join(Taggable, Taggable.tag_id == Tag.id)
        .filter(Taggable.taggable_type == taggable_type)
        .filter(Taggable.taggable_id == taggable_id)
        .order_by(Tag.name.asc())
        .all()
    )


def get_tag_page(owner_id: int, tag_id: int) -> dict:
    tag = Tag.query.filter_by(id=tag_id, user_id=owner_id).first()
    if tag is None:
        raise NotFoundError("tag not found")

    def tagged(model, taggable_type):
        return (
            model.query.join(
                Taggable,
                db.and_(
                    Taggable.taggable_id == model.id,
                    Taggable.taggable_type == taggable_type,
                ),
            )
            .filter(Taggable.tag_id == tag.id)
            .filter(model.user_id == owner_id)
            .order_by(model.title.asc(), model.id.asc())
            .all()
        )

    return {
        "tag": {"id": tag.id, "name": tag.name},
        "groups": [group.as_dict() for group in tagged(Group, TAGGABLE_GROUP)],
        "links": [link.as_dict() for link in tagged(Link, TAGGABLE_LINK)],
    }
