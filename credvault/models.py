import uuid
from datetime import datetime, timezone

from .database import db


def utcnow():
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _new_id():
    return str(uuid.uuid4())


class User(db.Model):
    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    username = db.Column(db.String(256), nullable=False)
    email = db.Column(db.String(256), nullable=False, unique=True, index=True)
    password_hash = db.Column(db.String(128), nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, nullable=False)


class VaultEntry(db.Model):
    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    owner_id = db.Column(db.String(36), db.ForeignKey('user.id'), nullable=False, index=True)
    site_name = db.Column(db.String(256), nullable=False)
    site_url = db.Column(db.String(2048))
    username = db.Column(db.String(256), nullable=False)
    encrypted_secret = db.Column(db.Text, nullable=False)  # hex
    encryption_iv = db.Column(db.String(32), nullable=False)  # hex, one block
    notes = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, nullable=False)
