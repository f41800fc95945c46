from linkgroups.extensions import db
from linkgroups.models import Group, User


def _create_user(username: str, password: str, is_admin=False):
    user = User(username=username, is_admin=is_admin, is_active=True)
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    return user


def _token(client, username: str, password: str):
    response = client.post(
        "/api/v1/auth/token",
        json={"username": username, "password": password, "token_name": "pytest"},
    )
    assert response.status_code == 200
    return response.get_json()["token"]


def _auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def _login(client, app, username: str, password: str = "secret") -> dict:
    with app.app_context():
        _create_user(username, password)
    return _auth(_token(client, username, password))


def _create(client, headers, title, parent_group_id=None):
    response = client.post(
        "/api/v1/groups",
        json={"title": title, "parent_group_id": parent_group_id},
        headers=headers,
    )
    assert response.status_code == 201
    return response.get_json()["id"]


def test_groups_require_authentication(client):
    response = client.get("/api/v1/groups")
    assert response.status_code == 401

    response = client.get(
        "/api/v1/groups", headers={"Authorization": "Bearer not-a-token"}
    )
    assert response.status_code == 401


def test_bootstrap_admin_then_create_user(client):
    response = client.post(
        "/api/v1/auth/bootstrap-admin",
        json={"username": "admin", "password": "secret"},
    )
    assert response.status_code == 201

    again = client.post(
        "/api/v1/auth/bootstrap-admin",
        json={"username": "admin2", "password": "secret"},
    )
    assert again.status_code == 409

    headers = _auth(_token(client, "admin", "secret"))
    created = client.post(
        "/api/v1/admin/users",
        json={"username": "member", "password": "secret"},
        headers=headers,
    )
    assert created.status_code == 201

    member_headers = _auth(_token(client, "member", "secret"))
    forbidden = client.post(
        "/api/v1/admin/users",
        json={"username": "other", "password": "secret"},
        headers=member_headers,
    )
    assert forbidden.status_code == 403


def test_create_group_validation_errors(client, app):
    headers = _login(client, app, "validation")

    short = client.post("/api/v1/groups", json={"title": "ab"}, headers=headers)
    assert short.status_code == 422
    assert short.get_json()["field"] == "title"

    missing_parent = client.post(
        "/api/v1/groups",
        json={"title": "Orphan", "parent_group_id": 4242},
        headers=headers,
    )
    assert missing_parent.status_code == 422
    assert missing_parent.get_json()["field"] == "parent_group_id"

    bad_parent = client.post(
        "/api/v1/groups",
        json={"title": "Orphan", "parent_group_id": "abc"},
        headers=headers,
    )
    assert bad_parent.status_code == 422


def test_list_root_groups_with_counts(client, app):
    headers = _login(client, app, "roots")
    work_id = _create(client, headers, "Work")
    _create(client, headers, "Projects", work_id)
    _create(client, headers, "Home")

    link = client.post(
        "/api/v1/links",
        json={"title": "Docs", "url": "https://docs.example", "group_ids": [work_id]},
        headers=headers,
    )
    assert link.status_code == 201

    first = client.get("/api/v1/groups", headers=headers).get_json()["items"]
    second = client.get("/api/v1/groups", headers=headers).get_json()["items"]

    assert first == second
    assert [item["title"] for item in first] == ["Home", "Work"]
    assert first[1]["child_group_count"] == 1
    assert first[1]["link_count"] == 1

    flat = client.get("/api/v1/groups/all", headers=headers).get_json()["items"]
    assert [item["title"] for item in flat] == ["Home", "Projects", "Work"]
    assert flat[1]["parent_group_id"] == work_id
    assert "link_count" not in flat[0]


def test_show_group_returns_breadcrumbs_children_and_links(client, app):
    headers = _login(client, app, "show")
    work_id = _create(client, headers, "Work")
    projects_id = _create(client, headers, "Projects", work_id)
    alpha_id = _create(client, headers, "Alpha", projects_id)
    client.post(
        "/api/v1/links",
        json={"title": "Spec", "url": "https://spec.example", "group_ids": [alpha_id]},
        headers=headers,
    )

    response = client.get(f"/api/v1/groups/{alpha_id}", headers=headers)
    assert response.status_code == 200
    payload = response.get_json()

    assert payload["group"]["parent_group_id"] == projects_id
    assert payload["ancestor_chain"] == [
        {"title": "Work", "link": f"/api/v1/groups/{work_id}"},
        {"title": "Projects", "link": f"/api/v1/groups/{projects_id}"},
    ]
    assert payload["children"] == []
    assert [item["title"] for item in payload["links"]["items"]] == ["Spec"]


def test_other_users_groups_look_missing(client, app):
    owner_headers = _login(client, app, "owner")
    intruder_headers = _login(client, app, "intruder")
    group_id = _create(client, owner_headers, "Private")

    shown = client.get(f"/api/v1/groups/{group_id}", headers=intruder_headers)
    assert shown.status_code == 404

    updated = client.put(
        f"/api/v1/groups/{group_id}",
        json={"title": "Hijacked"},
        headers=intruder_headers,
    )
    assert updated.status_code == 404

    deleted = client.delete(f"/api/v1/groups/{group_id}", headers=intruder_headers)
    assert deleted.status_code == 404

    parented = client.post(
        "/api/v1/groups",
        json={"title": "Sneaky", "parent_group_id": group_id},
        headers=intruder_headers,
    )
    assert parented.status_code == 422

    with app.app_context():
        group = db.session.get(Group, group_id)
        assert group.title == "Private"


def test_update_ignores_self_parent_and_patch_keeps_fields(client, app):
    headers = _login(client, app, "updates")
    work_id = _create(client, headers, "Work")
    projects_id = _create(client, headers, "Projects", work_id)

    response = client.put(
        f"/api/v1/groups/{projects_id}",
        json={"title": "X-Projects", "parent_group_id": projects_id},
        headers=headers,
    )
    assert response.status_code == 200
    assert response.get_json()["title"] == "X-Projects"
    assert response.get_json()["parent_group_id"] == work_id

    patched = client.patch(
        f"/api/v1/groups/{projects_id}",
        json={"title": "Projects"},
        headers=headers,
    )
    assert patched.status_code == 200
    assert patched.get_json()["parent_group_id"] == work_id

    moved = client.put(
        f"/api/v1/groups/{projects_id}",
        json={"title": "Projects", "parent_group_id": None},
        headers=headers,
    )
    assert moved.get_json()["parent_group_id"] is None

    nested = client.patch(
        f"/api/v1/groups/{work_id}",
        json={"parent_group_id": projects_id},
        headers=headers,
    )
    assert nested.status_code == 200

    cycle = client.patch(
        f"/api/v1/groups/{projects_id}",
        json={"parent_group_id": work_id},
        headers=headers,
    )
    assert cycle.status_code == 422


def test_delete_group_reparents_children(client, app):
    headers = _login(client, app, "deleter")
    work_id = _create(client, headers, "Work")
    projects_id = _create(client, headers, "Projects", work_id)
    alpha_id = _create(client, headers, "Alpha", projects_id)

    response = client.delete(f"/api/v1/groups/{projects_id}", headers=headers)
    assert response.status_code == 200
    assert response.get_json()["reparented_groups"] == 1

    shown = client.get(f"/api/v1/groups/{alpha_id}", headers=headers).get_json()
    assert shown["group"]["parent_group_id"] == work_id
    assert [crumb["title"] for crumb in shown["ancestor_chain"]] == ["Work"]

    gone = client.get(f"/api/v1/groups/{projects_id}", headers=headers)
    assert gone.status_code == 404


def test_corrupt_tree_surfaces_internal_error(client, app):
    headers = _login(client, app, "corrupt")
    first_id = _create(client, headers, "First")
    second_id = _create(client, headers, "Second", first_id)

    with app.app_context():
        first = db.session.get(Group, first_id)
        first.parent_group_id = second_id
        db.session.commit()

    response = client.get(f"/api/v1/groups/{second_id}", headers=headers)
    assert response.status_code == 500
    assert response.get_json()["error"] == "group tree contains a cycle"


def test_tags_and_search_cover_groups_tags_and_links(client, app):
    headers = _login(client, app, "searcher")
    group_id = _create(client, headers, "Python Resources")
    tagged = client.put(
        f"/api/v1/groups/{group_id}/tags",
        json={"tags": ["python", "reference"]},
        headers=headers,
    )
    assert tagged.get_json()["tags"] == ["python", "reference"]

    client.post(
        "/api/v1/links",
        json={
            "title": "Python docs",
            "url": "https://docs.python.org",
            "group_ids": [group_id],
            "tags": "python",
        },
        headers=headers,
    )

    tags = client.get("/api/v1/tags", headers=headers).get_json()["items"]
    assert [tag["name"] for tag in tags] == ["python", "reference"]

    tag_page = client.get(f"/api/v1/tags/{tags[0]['id']}", headers=headers).get_json()
    assert [group["title"] for group in tag_page["groups"]] == ["Python Resources"]
    assert [link["title"] for link in tag_page["links"]] == ["Python docs"]

    results = client.get("/api/v1/search?q=python", headers=headers).get_json()
    items = results["items"]
    assert [row["title"] for row in items["Groups"]] == ["Python Resources"]
    assert items["Groups"][0]["url"] == f"/api/v1/groups/{group_id}"
    assert [row["title"] for row in items["Tags"]] == ["python"]
    assert [row["title"] for row in items["Links"]] == ["Python docs"]


def test_attach_and_detach_links(client, app):
    headers = _login(client, app, "linker")
    group_id = _create(client, headers, "Inbox")
    link_id = client.post(
        "/api/v1/links",
        json={"title": "Later", "url": "https://later.example"},
        headers=headers,
    ).get_json()["id"]

    attached = client.post(
        f"/api/v1/groups/{group_id}/links/{link_id}", headers=headers
    )
    assert attached.get_json()["attached"] is True

    shown = client.get(f"/api/v1/groups/{group_id}", headers=headers).get_json()
    assert shown["links"]["total"] == 1

    detached = client.delete(
        f"/api/v1/groups/{group_id}/links/{link_id}", headers=headers
    )
    assert detached.get_json()["detached"] is True

    shown = client.get(f"/api/v1/groups/{group_id}", headers=headers).get_json()
    assert shown["links"]["total"] == 0


def test_search_ignores_non_positive_limit(client, app):
    headers = _login(client, app, "limits")
    _create(client, headers, "Python One")
    _create(client, headers, "Python Two")

    for limit in ("-1", "0"):
        results = client.get(
            f"/api/v1/search?q=python&limit={limit}", headers=headers
        ).get_json()
        assert sorted(row["title"] for row in results["items"]["Groups"]) == [
            "Python One",
            "Python Two",
        ]

    capped = client.get("/api/v1/search?q=python&limit=1", headers=headers).get_json()
    assert len(capped["items"]["Groups"]) == 1


def test_put_link_tags_replaces_tags_and_hides_foreign_links(client, app):
    headers = _login(client, app, "tagger")
    link_id = client.post(
        "/api/v1/links",
        json={"title": "Recipes", "url": "https://recipes.example", "tags": "food"},
        headers=headers,
    ).get_json()["id"]

    replaced = client.put(
        f"/api/v1/links/{link_id}/tags",
        json={"tags": "Cooking; later"},
        headers=headers,
    )
    assert replaced.status_code == 200
    assert replaced.get_json() == {"id": link_id, "tags": ["cooking", "later"]}

    intruder = _login(client, app, "intruder")
    foreign = client.put(
        f"/api/v1/links/{link_id}/tags", json={"tags": "mine"}, headers=intruder
    )
    assert foreign.status_code == 404
