import hashlib
import secrets
from dataclasses import dataclass
from datetime import datetime, timezone

from werkzeug.security import check_password_hash, generate_password_hash

from linkgroups.extensions import db


GROUPS_URL_PREFIX = "/api/v1/groups"
TAGS_URL_PREFIX = "/api/v1/tags"

GROUPABLE_LINK = "link"
TAGGABLE_LINK = "link"
TAGGABLE_GROUP = "group"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class SearchResult:
    type: str
    id: int
    title: str
    url: str

    def as_dict(self):
        return {"type": self.type, "id": self.id, "title": self.title, "url": self.url}


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(120), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    is_admin = db.Column(db.Boolean, nullable=False, default=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(
        db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    def set_password(self, password: str) -> None:
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        return check_password_hash(self.password_hash, password)


class ApiToken(db.Model):
    __tablename__ = "api_tokens"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer, db.ForeignKey("users.id"), nullable=False, index=True
    )
    name = db.Column(db.String(120), nullable=False)
    token_hash = db.Column(db.String(128), nullable=False, unique=True)
    last_used_at = db.Column(db.DateTime(timezone=True), nullable=True)
    revoked_at = db.Column(db.DateTime(timezone=True), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    user = db.relationship("User", backref="api_tokens")

    @staticmethod
    def issue_token(prefix="lg"):
        token = f"{prefix}_{secrets.token_urlsafe(32)}"
        token_hash = hashlib.sha256(token.encode("utf-8")).hexdigest()
        return token, token_hash


class Group(db.Model):
    __tablename__ = "groups"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer, db.ForeignKey("users.id"), nullable=False, index=True
    )
    title = db.Column(db.String(255), nullable=False)
    parent_group_id = db.Column(
        db.Integer, db.ForeignKey("groups.id"), nullable=True, index=True
    )
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(
        db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    __table_args__ = (
        db.Index("ix_group_user_parent", "user_id", "parent_group_id"),
    )

    @property
    def url(self) -> str:
        return f"{GROUPS_URL_PREFIX}/{self.id}"

    def as_dict(self):
        return {
            "id": self.id,
            "title": self.title,
            "parent_group_id": self.parent_group_id,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    def as_search_result(self) -> SearchResult:
        return SearchResult("Groups", self.id, self.title, self.url)


class Link(db.Model):
    __tablename__ = "links"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer, db.ForeignKey("users.id"), nullable=False, index=True
    )
    title = db.Column(db.String(512), nullable=True)
    url = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(
        db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    __table_args__ = (db.Index("ix_link_user_created", "user_id", "created_at"),)

    def as_dict(self):
        return {
            "id": self.id,
            "title": self.title,
            "url": self.url,
            "created_at": self.created_at.isoformat(),
        }

    def as_search_result(self) -> SearchResult:
        return SearchResult("Links", self.id, self.title or self.url, self.url)


class Tag(db.Model):
    __tablename__ = "tags"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer, db.ForeignKey("users.id"), nullable=False, index=True
    )
    name = db.Column(db.String(64), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (db.UniqueConstraint("user_id", "name", name="uq_tag_user_name"),)

    def as_search_result(self) -> SearchResult:
        return SearchResult("Tags", self.id, self.name, f"{TAGS_URL_PREFIX}/{self.id}")


class Groupable(db.Model):
    __tablename__ = "groupables"

    group_id = db.Column(
        db.Integer, db.ForeignKey("groups.id"), primary_key=True, index=True
    )
    groupable_type = db.Column(db.String(32), primary_key=True)
    groupable_id = db.Column(db.Integer, primary_key=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        db.Index("ix_groupable_target", "groupable_type", "groupable_id"),
    )


class Taggable(db.Model):
    __tablename__ = "taggables"

    tag_id = db.Column(db.Integer, db.ForeignKey("tags.id"), primary_key=True)
    taggable_type = db.Column(db.String(32), primary_key=True)
    taggable_id = db.Column(db.Integer, primary_key=True)

    __table_args__ = (
        db.Index("ix_taggable_target", "taggable_type", "taggable_id"),
    )
