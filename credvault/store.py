"""
Owner-scoped persistence for identities and vault entries.

Every entry lookup, update and delete filters on id AND owner in a single
statement, so a caller can never observe an entry it does not own. Database
failures are rolled back and surfaced as PersistenceError without retrying.
"""

import logging
from contextlib import contextmanager
from typing import List, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from .database import db
from .errors import EmailTaken, PersistenceError
from .models import User, VaultEntry, utcnow

logger = logging.getLogger(__name__)


# OperationalError messages that a retry can get past.
TRANSIENT_MARKERS = (
    'database is locked',
    'database table is locked',
    'lock timeout',
    'deadlock',
    'could not connect',
    'connection refused',
    'server closed the connection',
    'connection reset',
)


def _is_transient(exc: SQLAlchemyError) -> bool:
    if isinstance(exc, PoolTimeoutError):
        return True
    if isinstance(exc, DBAPIError) and exc.connection_invalidated:
        return True
    if isinstance(exc, OperationalError):
        message = str(exc.orig if exc.orig is not None else exc).lower()
        return any(marker in message for marker in TRANSIENT_MARKERS)
    return False


@contextmanager
def _transaction():
    try:
        yield db.session
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        transient = _is_transient(exc)
        logger.error('Database error (%s): %s', 'transient' if transient else 'fatal', exc.__class__.__name__)
        raise PersistenceError('Database error', transient=transient) from exc
    except Exception:
        db.session.rollback()
        raise


class UserStore:
    def _email_taken(self, session, email: str) -> bool:
        return session.execute(select(User.id).filter_by(email=email)).first() is not None

    def get(self, user_id: str) -> Optional[User]:
        with _transaction() as session:
            return session.get(User, user_id)

    def find_by_email(self, email: str) -> Optional[User]:
        with _transaction() as session:
            return session.execute(select(User).filter_by(email=email)).scalar_one_or_none()

    def insert(self, user: User) -> User:
        try:
            with _transaction() as session:
                if self._email_taken(session, user.email):
                    raise EmailTaken()
                session.add(user)
        except PersistenceError as exc:
            # Lost a race with a concurrent registration for the same email.
            if isinstance(exc.__cause__, IntegrityError):
                raise EmailTaken() from None
            raise
        return user


class EntryStore:
    def get(self, entry_id: str, owner_id: str) -> Optional[VaultEntry]:
        with _transaction() as session:
            return session.execute(
                select(VaultEntry).filter_by(id=entry_id, owner_id=owner_id)
            ).scalar_one_or_none()

    def list_by_owner(self, owner_id: str) -> List[VaultEntry]:
        with _transaction() as session:
            return list(session.execute(
                select(VaultEntry).filter_by(owner_id=owner_id).order_by(VaultEntry.created_at)
            ).scalars())

    def insert(self, entry: VaultEntry) -> VaultEntry:
        with _transaction() as session:
            session.add(entry)
        return entry

    def update(self, entry_id: str, owner_id: str, changes: dict) -> Optional[VaultEntry]:
        """Apply changes to the owned entry in one transaction; None if not found."""
        with _transaction() as session:
            entry = session.execute(
                select(VaultEntry)
                .filter_by(id=entry_id, owner_id=owner_id)
                .with_for_update()
            ).scalar_one_or_none()
            if entry is None:
                return None
            for name, value in changes.items():
                setattr(entry, name, value)
            entry.updated_at = utcnow()
        return entry

    def delete(self, entry_id: str, owner_id: str) -> bool:
        with _transaction() as session:
            result = session.execute(
                delete(VaultEntry).where(VaultEntry.id == entry_id, VaultEntry.owner_id == owner_id)
            )
        return result.rowcount > 0
