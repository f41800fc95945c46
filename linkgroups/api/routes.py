from __future__ import annotations

from flask import current_app, g, jsonify, request

from linkgroups.api import api_bp
from linkgroups.errors import GroupError, ParentReferenceError, ValidationError
from linkgroups.extensions import db
from linkgroups.models import TAGGABLE_GROUP, TAGGABLE_LINK, ApiToken, Tag, User
from linkgroups.services.common import parse_optional_id
from linkgroups.services.groups import (
    create_group,
    delete_group,
    get_group_page,
    list_all,
    list_root_groups,
    update_group,
)
from linkgroups.services.links import attach_link, create_link, detach_link
from linkgroups.services.ownership import get_owned_group
from linkgroups.services.search import search_owner
from linkgroups.services.security import api_auth_required
from linkgroups.services.tags import get_tag_page, set_tags, tags_for


def _to_bool(value, default=False):
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


def _payload() -> dict:
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


def _parent_id_from(payload: dict) -> int | None:
    try:
        return parse_optional_id(payload.get("parent_group_id"))
    except (TypeError, ValueError):
        raise ParentReferenceError("parent group is invalid") from None


def _group_with_tags(group) -> dict:
    return {
        **group.as_dict(),
        "url": group.url,
        "tags": [tag.name for tag in tags_for(TAGGABLE_GROUP, group.id)],
    }


@api_bp.errorhandler(GroupError)
def handle_group_error(error: GroupError):
    return jsonify(error.as_dict()), error.status_code


@api_bp.route("/health")
def health():
    return jsonify({"status": "ok", "service": "linkgroups"})


@api_bp.route("/auth/bootstrap-admin", methods=["POST"])
def bootstrap_admin_api():
    if User.query.count() > 0:
        return jsonify({"error": "bootstrap already completed"}), 409

    payload = _payload()
    username = (payload.get("username") or "").strip()
    password = payload.get("password") or ""
    if not username or not password:
        return jsonify({"error": "username and password are required"}), 400

    admin = User(username=username, is_admin=True, is_active=True)
    admin.set_password(password)
    db.session.add(admin)
    db.session.commit()
    return jsonify({"status": "created", "user_id": admin.id}), 201


@api_bp.route("/auth/token", methods=["POST"])
def create_token_with_credentials():
    payload = _payload()
    username = (payload.get("username") or "").strip()
    password = payload.get("password") or ""
    token_name = (payload.get("token_name") or "linkgroups API token").strip()

    user = User.query.filter_by(username=username).first()
    if not user or not user.is_active or not user.check_password(password):
        return jsonify({"error": "invalid credentials"}), 401

    token, token_hash = ApiToken.issue_token()
    row = ApiToken(user_id=user.id, name=token_name, token_hash=token_hash)
    db.session.add(row)
    db.session.commit()
    return jsonify({"token": token, "token_name": token_name, "user_id": user.id})


@api_bp.route("/admin/users", methods=["POST"])
@api_auth_required(admin=True)
def admin_create_user():
    payload = _payload()
    username = (payload.get("username") or "").strip()
    password = payload.get("password") or ""
    is_admin = _to_bool(payload.get("is_admin"), default=False)

    if not username or not password:
        return jsonify({"error": "username and password are required"}), 400
    if User.query.filter_by(username=username).first():
        return jsonify({"error": "username already exists"}), 409

    user = User(username=username, is_admin=is_admin, is_active=True)
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    return jsonify({"status": "created", "user_id": user.id}), 201


@api_bp.route("/groups", methods=["GET"])
@api_auth_required()
def groups_index():
    user = g.api_user
    return jsonify(
        {"items": [summary.as_dict() for summary in list_root_groups(user.id)]}
    )


@api_bp.route("/groups/all", methods=["GET"])
@api_auth_required()
def groups_all():
    user = g.api_user
    return jsonify({"items": [summary.as_dict() for summary in list_all(user.id)]})


@api_bp.route("/groups/<int:group_id>", methods=["GET"])
@api_auth_required()
def groups_show(group_id: int):
    user = g.api_user
    page = request.args.get("page", type=int) or 1
    return jsonify(get_group_page(user.id, group_id, page=page))


@api_bp.route("/groups", methods=["POST"])
@api_auth_required()
def groups_create():
    user = g.api_user
    payload = _payload()
    group = create_group(user.id, payload.get("title"), _parent_id_from(payload))
    return jsonify(_group_with_tags(group)), 201


@api_bp.route("/groups/<int:group_id>", methods=["PUT", "PATCH"])
@api_auth_required()
def groups_update(group_id: int):
    user = g.api_user
    group = get_owned_group(user.id, group_id)
    payload = _payload()

    title = payload.get("title")
    parent_group_id = _parent_id_from(payload)
    if request.method == "PATCH":
        if "title" not in payload:
            title = group.title
        if "parent_group_id" not in payload:
            parent_group_id = group.parent_group_id

    group = update_group(user.id, group_id, title, parent_group_id)
    return jsonify(_group_with_tags(group))


@api_bp.route("/groups/<int:group_id>", methods=["DELETE"])
@api_auth_required()
def groups_delete(group_id: int):
    user = g.api_user
    result = delete_group(user.id, group_id)
    return jsonify({"status": "deleted", **result.as_dict()})


@api_bp.route("/groups/<int:group_id>/tags", methods=["PUT"])
@api_auth_required()
def groups_set_tags(group_id: int):
    user = g.api_user
    names = set_tags(user.id, TAGGABLE_GROUP, group_id, _payload().get("tags"))
    return jsonify({"id": group_id, "tags": names})


@api_bp.route("/links", methods=["POST"])
@api_auth_required()
def links_create():
    user = g.api_user
    payload = _payload()
    raw_group_ids = payload.get("group_ids") or []
    if not isinstance(raw_group_ids, list):
        raise ValidationError("group_ids must be a list", field="group_ids")
    try:
        group_ids = [parse_optional_id(value) for value in raw_group_ids]
    except (TypeError, ValueError):
        raise ValidationError("group_ids are invalid", field="group_ids") from None

    link = create_link(
        user.id,
        payload.get("title"),
        payload.get("url"),
        group_ids=[group_id for group_id in group_ids if group_id is not None],
    )
    if "tags" in payload:
        set_tags(user.id, TAGGABLE_LINK, link.id, payload.get("tags"))
    return jsonify(link.as_dict()), 201


@api_bp.route("/links/<int:link_id>/tags", methods=["PUT"])
@api_auth_required()
def links_set_tags(link_id: int):
    user = g.api_user
    names = set_tags(user.id, TAGGABLE_LINK, link_id, _payload().get("tags"))
    return jsonify({"id": link_id, "tags": names})


@api_bp.route("/groups/<int:group_id>/links/<int:link_id>", methods=["POST"])
@api_auth_required()
def groups_attach_link(group_id: int, link_id: int):
    user = g.api_user
    attached = attach_link(user.id, link_id, group_id)
    return jsonify({"ok": True, "attached": attached})


@api_bp.route("/groups/<int:group_id>/links/<int:link_id>", methods=["DELETE"])
@api_auth_required()
def groups_detach_link(group_id: int, link_id: int):
    user = g.api_user
    detached = detach_link(user.id, link_id, group_id)
    return jsonify({"ok": True, "detached": detached})


@api_bp.route("/tags", methods=["GET"])
@api_auth_required()
def tags_list():
    user = g.api_user
    tags = Tag.query.filter_by(user_id=user.id).order_by(Tag.name.asc()).all()
    return jsonify({"items": [{"id": tag.id, "name": tag.name} for tag in tags]})


@api_bp.route("/tags/<int:tag_id>", methods=["GET"])
@api_auth_required()
def tags_show(tag_id: int):
    user = g.api_user
    return jsonify(get_tag_page(user.id, tag_id))


@api_bp.route("/search", methods=["GET"])
@api_auth_required()
def search_api():
    user = g.api_user
    query = (request.args.get("q") or "").strip()
    limit = request.args.get("limit", type=int)
    if not limit or limit <= 0:
        limit = current_app.config["SEARCH_RESULT_LIMIT"]
    return jsonify({"items": search_owner(user.id, query, limit=limit)})
