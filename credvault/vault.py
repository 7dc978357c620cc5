"""
Ownership-scoped operations over encrypted vault entries.

Plaintext secrets exist only on the way in (create, update) and on the way out
(the returned EntryView). A missing entry and an entry owned by someone else
both come back as the same NotFoundError.
"""

import logging
from typing import List

from .cipher import CipherEngine
from .errors import CryptoError, NotFoundError
from .models import VaultEntry
from .schemas import EntryCreate, EntryUpdate, EntryView
from .store import EntryStore

logger = logging.getLogger(__name__)

ENTRY_NOT_FOUND = 'Password not found'


class VaultService:
    def __init__(self, store: EntryStore, cipher: CipherEngine, key: bytes):
        self._store = store
        self._cipher = cipher
        self._key = key

    def _view(self, entry: VaultEntry) -> EntryView:
        secret = self._cipher.unseal(entry.encrypted_secret, entry.encryption_iv, self._key)
        return EntryView(
            id=entry.id,
            site_name=entry.site_name,
            site_url=entry.site_url,
            username=entry.username,
            password=secret,
            notes=entry.notes,
            created_at=entry.created_at,
            updated_at=entry.updated_at,
        )

    def create_entry(self, owner_id: str, data: EntryCreate) -> EntryView:
        encrypted_secret, encryption_iv = self._cipher.seal(data.password, self._key)
        entry = self._store.insert(VaultEntry(
            owner_id=owner_id,
            site_name=data.site_name,
            site_url=data.site_url,
            username=data.username,
            encrypted_secret=encrypted_secret,
            encryption_iv=encryption_iv,
            notes=data.notes,
        ))
        logger.info('Created entry %s for %s', entry.id, owner_id)
        return self._view(entry)

    def list_entries(self, owner_id: str) -> List[EntryView]:
        views = []
        for entry in self._store.list_by_owner(owner_id):
            try:
                views.append(self._view(entry))
            except CryptoError as exc:
                logger.warning('Skipping entry %s: %s', entry.id, exc.__class__.__name__)
        return views

    def get_entry(self, owner_id: str, entry_id: str) -> EntryView:
        entry = self._store.get(entry_id, owner_id)
        if entry is None:
            raise NotFoundError(ENTRY_NOT_FOUND)
        return self._view(entry)

    def update_entry(self, owner_id: str, entry_id: str, data: EntryUpdate) -> EntryView:
        changes = data.changes()
        secret = changes.pop('password', None)
        if secret is not None:
            changes['encrypted_secret'], changes['encryption_iv'] = self._cipher.seal(secret, self._key)

        entry = self._store.update(entry_id, owner_id, changes)
        if entry is None:
            raise NotFoundError(ENTRY_NOT_FOUND)
        logger.info('Updated entry %s (%s)', entry.id, ', '.join(sorted(changes)) or 'no fields')
        return self._view(entry)

    def delete_entry(self, owner_id: str, entry_id: str) -> None:
        if not self._store.delete(entry_id, owner_id):
            raise NotFoundError(ENTRY_NOT_FOUND)
        logger.info('Deleted entry %s', entry_id)
