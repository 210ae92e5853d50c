"""Account persistence.

`UserRepository` is the storage contract the account service depends on.
Two implementations:

- InMemoryUserRepository: per-instance dicts, for demos and tests
- SqlAlchemyUserRepository: one `accounts` table; preferences, history and
  saved recipes live in a JSON document column next to the indexed email

create_repository() picks one from DATABASE_URL, the same way the service
switches between an ephemeral and a persistent store.
"""

import threading
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Callable, Optional

from sqlalchemy import JSON, DateTime, String, create_engine, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker
from sqlalchemy.pool import StaticPool

from taste_predictor.accounts.exceptions import AccountNotFoundError, EmailAlreadyRegisteredError
from taste_predictor.models.models import Account, normalize_email, utc_now
from taste_predictor.utils.logger import logger


class UserRepository(ABC):
    """Storage contract for accounts. Implementations return detached copies."""

    storage_name = "abstract"

    @abstractmethod
    def find_by_email(self, email: str) -> Optional[Account]:
        """Look up an account by email, case-insensitively."""

    @abstractmethod
    def find_by_id(self, account_id: str) -> Optional[Account]:
        """Look up an account by id."""

    @abstractmethod
    def insert(self, account: Account) -> Account:
        """Store a new account.

        Raises:
            EmailAlreadyRegisteredError: If the email is taken.
        """

    @abstractmethod
    def update(self, account: Account) -> Account:
        """Replace a stored account.

        Raises:
            AccountNotFoundError: If no account has this id.
        """

    @abstractmethod
    def modify(self, account_id: str, change: Callable[[Account], None]) -> Account:
        """Apply `change` to the current stored account and persist it atomically.

        `change` receives a fresh copy read under the store's lock (or row lock)
        and mutates it in place; anything it raises aborts the write.

        Raises:
            AccountNotFoundError: If no account has this id.
        """


class InMemoryUserRepository(UserRepository):
    """Thread-safe in-process store. Contents are lost on restart."""

    storage_name = "memory"

    def __init__(self) -> None:
        self._accounts: dict[str, Account] = {}
        self._ids_by_email: dict[str, str] = {}
        self._lock = threading.Lock()

    def find_by_email(self, email: str) -> Optional[Account]:
        with self._lock:
            account_id = self._ids_by_email.get(normalize_email(email))
            if account_id is None:
                return None
            return self._accounts[account_id].model_copy(deep=True)

    def find_by_id(self, account_id: str) -> Optional[Account]:
        with self._lock:
            account = self._accounts.get(account_id)
            return account.model_copy(deep=True) if account else None

    def insert(self, account: Account) -> Account:
        email = normalize_email(account.email)
        with self._lock:
            if email in self._ids_by_email:
                raise EmailAlreadyRegisteredError(f"Email already registered: {email}")
            stored = account.model_copy(update={"email": email}, deep=True)
            self._accounts[stored.id] = stored
            self._ids_by_email[email] = stored.id
            return stored.model_copy(deep=True)

    def update(self, account: Account) -> Account:
        with self._lock:
            current = self._accounts.get(account.id)
            if current is None:
                raise AccountNotFoundError(f"Account not found: {account.id}")
            email = normalize_email(account.email)
            owner = self._ids_by_email.get(email)
            if owner is not None and owner != account.id:
                raise EmailAlreadyRegisteredError(f"Email already registered: {email}")
            stored = account.model_copy(update={"email": email}, deep=True)
            del self._ids_by_email[normalize_email(current.email)]
            self._accounts[stored.id] = stored
            self._ids_by_email[email] = stored.id
            return stored.model_copy(deep=True)

    def modify(self, account_id: str, change: Callable[[Account], None]) -> Account:
        with self._lock:
            current = self._accounts.get(account_id)
            if current is None:
                raise AccountNotFoundError(f"Account not found: {account_id}")
            working = current.model_copy(deep=True)
            change(working)
            # Lookup keys are not changed through modify
            working.id = current.id
            working.email = current.email
            working.updated_at = utc_now()
            self._accounts[account_id] = working
            return working.model_copy(deep=True)


class Base(DeclarativeBase):
    pass


class AccountRow(Base):
    """`accounts` table. Everything except the lookup keys is in `document`."""

    __tablename__ = "accounts"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    email: Mapped[str] = mapped_column(String(254), unique=True, index=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    document: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    DOCUMENT_FIELDS = {"preferences", "history", "saved_recipes"}

    @classmethod
    def from_account(cls, account: Account) -> "AccountRow":
        row = cls(id=account.id)
        row.apply(account)
        return row

    def apply(self, account: Account) -> None:
        self.email = normalize_email(account.email)
        self.password_hash = account.password_hash
        self.document = account.model_dump(mode="json", include=self.DOCUMENT_FIELDS)
        self.created_at = account.created_at
        self.updated_at = account.updated_at

    def to_account(self) -> Account:
        return Account.model_validate(
            {
                "id": self.id,
                "email": self.email,
                "password_hash": self.password_hash,
                "created_at": self.created_at,
                "updated_at": self.updated_at,
                **(self.document or {}),
            }
        )


class SqlAlchemyUserRepository(UserRepository):
    """SQL-backed store for SQLite or PostgreSQL URLs.

    Args:
        database_url: SQLAlchemy URL, e.g. "sqlite:///taste.db" or "postgresql://user:pw@host/db".
    """

    storage_name = "database"

    def __init__(self, database_url: str) -> None:
        engine_kwargs: dict[str, Any] = {}
        if database_url.startswith("sqlite"):
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            # In-memory SQLite lives inside one connection; share it across threads
            if database_url in ("sqlite://", "sqlite:///:memory:"):
                engine_kwargs["poolclass"] = StaticPool

        self.engine = create_engine(database_url, **engine_kwargs)
        self._sessions = sessionmaker(bind=self.engine, expire_on_commit=False)
        self._write_lock = threading.Lock()
        Base.metadata.create_all(self.engine)

    def _session(self) -> Session:
        return self._sessions()

    def find_by_email(self, email: str) -> Optional[Account]:
        with self._session() as session:
            row = session.scalar(select(AccountRow).where(AccountRow.email == normalize_email(email)))
            return row.to_account() if row else None

    def find_by_id(self, account_id: str) -> Optional[Account]:
        with self._session() as session:
            row = session.get(AccountRow, account_id)
            return row.to_account() if row else None

    def insert(self, account: Account) -> Account:
        with self._session() as session:
            row = AccountRow.from_account(account)
            session.add(row)
            try:
                session.commit()
            except IntegrityError as e:
                session.rollback()
                raise EmailAlreadyRegisteredError(f"Email already registered: {row.email}") from e
            return row.to_account()

    def update(self, account: Account) -> Account:
        with self._session() as session:
            row = session.get(AccountRow, account.id)
            if row is None:
                raise AccountNotFoundError(f"Account not found: {account.id}")
            row.apply(account)
            try:
                session.commit()
            except IntegrityError as e:
                session.rollback()
                raise EmailAlreadyRegisteredError(f"Email already registered: {row.email}") from e
            return row.to_account()

    def modify(self, account_id: str, change: Callable[[Account], None]) -> Account:
        # SQLite ignores FOR UPDATE; in-process writers also serialize on _write_lock
        with self._write_lock, self._session() as session, session.begin():
            row = session.scalar(select(AccountRow).where(AccountRow.id == account_id).with_for_update())
            if row is None:
                raise AccountNotFoundError(f"Account not found: {account_id}")
            working = row.to_account()
            change(working)
            working.id = row.id
            working.email = row.email
            working.updated_at = utc_now()
            row.apply(working)
        return working.model_copy(deep=True)


def create_repository(database_url: Optional[str] = None) -> UserRepository:
    """Build the repository for the configured storage.

    Args:
        database_url: SQLAlchemy URL; None or empty selects the in-memory store.
    """
    if database_url:
        target = database_url.split("@")[1] if "@" in database_url else database_url
        logger.info(f"Using database account storage: {target}")
        return SqlAlchemyUserRepository(database_url)

    logger.info("Using in-memory account storage (accounts are lost on restart)")
    return InMemoryUserRepository()
