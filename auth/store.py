"""
auth/store.py -- SQLAlchemy Core persistence layer for auth entities.

Pattern: Repository + Data Mapper.
UserStore is the repository; the _row_to_* functions are the mappers.
Service and route code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

Transactions:
  register_user() runs the user insert, both seed lookups and both binding
  inserts inside a single engine.begin() block. Any exception (including a
  missing seed row) rolls the whole unit back, so a user never exists without
  its role and sector bindings.

  Email uniqueness is enforced by the UNIQUE constraint on users.email. The
  store does not pre-check; IntegrityError propagates to the caller, which is
  the only arbiter of "email already taken".

Ordering:
  Binding lookups order by (created_at, id) so "first binding" is the
  earliest-created one rather than whatever order the engine returns.

Layer rule: no imports from api/ or tickets/.
"""

from __future__ import annotations

import logging

from sqlalchemy import Column, ForeignKey, Integer, MetaData, String, Table, Text, select
from sqlalchemy.engine import Connection, Engine

from auth.models import Dependency, InternalSec, Role, User
from core.database import make_engine
from core.database import now_iso as _now_iso
from core.exceptions import NotFoundError

logger = logging.getLogger("ticketdesk.auth")

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", String(255), nullable=False),
    Column("email", String(255), nullable=False, unique=True),
    Column("hashed_password", Text, nullable=False),
    Column("created_at", String(32), nullable=False),
)

_roles = Table(
    "roles",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(50), nullable=False, unique=True),
)

_dependencies = Table(
    "dependencies",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(100), nullable=False, unique=True),
)

_internal_secs = Table(
    "internal_secs",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(100), nullable=False, unique=True),
    Column("dependency_id", Integer, ForeignKey("dependencies.id")),
)

_user_roles = Table(
    "user_roles",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
    Column("role_id", Integer, ForeignKey("roles.id"), nullable=False),
    Column("created_at", String(32), nullable=False),
)

_user_internal_secs = Table(
    "user_internal_secs",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
    Column("internal_sec_id", Integer, ForeignKey("internal_secs.id"), nullable=False),
    Column("created_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for users, roles, dependencies, sectors and their bindings.

    Usage:
        store = UserStore(db_url)
        store.seed_defaults(roles=["ejecutor"], dependency="General", internal_sec="Guest")
        uid = store.register_user(user, role_name="ejecutor", internal_sec_name="Guest")
        detail = store.get_user_detail(uid)
        store.close()
    """

    def __init__(self, db_url: str, timeout: float = 5.0) -> None:
        self.engine: Engine = make_engine(db_url, timeout)
        _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Seed data
    # ------------------------------------------------------------------

    def seed_defaults(self, roles: list[str], dependency: str, internal_sec: str) -> None:
        """Create the given roles, dependency and sector if they are missing.

        Idempotent -- safe to call on every startup.
        """
        with self.engine.begin() as conn:
            for name in roles:
                if _find_id(conn, _roles, name) is None:
                    conn.execute(_roles.insert().values(name=name))
            dependency_id = _find_id(conn, _dependencies, dependency)
            if dependency_id is None:
                dependency_id = conn.execute(_dependencies.insert().values(name=dependency)).inserted_primary_key[0]
            if _find_id(conn, _internal_secs, internal_sec) is None:
                conn.execute(_internal_secs.insert().values(name=internal_sec, dependency_id=dependency_id))
        logger.info("Seed data ensured (roles=%s, sector=%s/%s)", ",".join(roles), dependency, internal_sec)

    def create_role(self, name: str) -> int:
        with self.engine.begin() as conn:
            return conn.execute(_roles.insert().values(name=name)).inserted_primary_key[0]

    def create_dependency(self, name: str) -> int:
        with self.engine.begin() as conn:
            return conn.execute(_dependencies.insert().values(name=name)).inserted_primary_key[0]

    def create_internal_sec(self, name: str, dependency_id: int | None = None) -> int:
        with self.engine.begin() as conn:
            result = conn.execute(_internal_secs.insert().values(name=name, dependency_id=dependency_id))
            return result.inserted_primary_key[0]

    def get_role_by_name(self, name: str) -> Role | None:
        with self.engine.connect() as conn:
            row = conn.execute(_roles.select().where(_roles.c.name == name)).fetchone()
        return Role(id=row.id, name=row.name) if row is not None else None

    def get_internal_sec(self, internal_sec_id: int) -> InternalSec | None:
        """Look up a sector by primary key. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_internal_secs.select().where(_internal_secs.c.id == internal_sec_id)).fetchone()
        return _row_to_internal_sec(row) if row is not None else None

    def get_internal_sec_by_name(self, name: str) -> InternalSec | None:
        with self.engine.connect() as conn:
            row = conn.execute(_internal_secs.select().where(_internal_secs.c.name == name)).fetchone()
        return _row_to_internal_sec(row) if row is not None else None

    def get_dependency(self, dependency_id: int) -> Dependency | None:
        with self.engine.connect() as conn:
            row = conn.execute(_dependencies.select().where(_dependencies.c.id == dependency_id)).fetchone()
        return Dependency(id=row.id, name=row.name) if row is not None else None

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def register_user(self, user: User, role_name: str, internal_sec_name: str) -> int:
        """Insert a user and bind it to the named role and sector atomically.

        Raises sqlalchemy.exc.IntegrityError if the email already exists.
        Raises NotFoundError if the role or sector seed row is missing. In
        both cases the transaction is rolled back and no user row remains.
        """
        with self.engine.begin() as conn:
            user_id = conn.execute(
                _users.insert().values(
                    username=user.username,
                    email=user.email,
                    hashed_password=user.hashed_password,
                    created_at=_now_iso(),
                )
            ).inserted_primary_key[0]

            role_id = _find_id(conn, _roles, role_name)
            if role_id is None:
                raise NotFoundError(f"Default role '{role_name}' is not configured.")
            internal_sec_id = _find_id(conn, _internal_secs, internal_sec_name)
            if internal_sec_id is None:
                raise NotFoundError(f"Default internal sector '{internal_sec_name}' is not configured.")

            now = _now_iso()
            conn.execute(_user_roles.insert().values(user_id=user_id, role_id=role_id, created_at=now))
            conn.execute(
                _user_internal_secs.insert().values(user_id=user_id, internal_sec_id=internal_sec_id, created_at=now)
            )
        return user_id

    def assign_role(self, user_id: int, role_id: int) -> int:
        """Add another role binding. The earliest binding stays authoritative."""
        with self.engine.begin() as conn:
            result = conn.execute(_user_roles.insert().values(user_id=user_id, role_id=role_id, created_at=_now_iso()))
            return result.inserted_primary_key[0]

    def assign_internal_sec(self, user_id: int, internal_sec_id: int) -> int:
        with self.engine.begin() as conn:
            result = conn.execute(
                _user_internal_secs.insert().values(
                    user_id=user_id, internal_sec_id=internal_sec_id, created_at=_now_iso()
                )
            )
            return result.inserted_primary_key[0]

    def get_by_email(self, email: str) -> User | None:
        """Look up a user by exact email. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.email == email)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_id(self, user_id: int) -> User | None:
        """Look up a user by primary key. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_user_detail(self, user_id: int) -> User | None:
        """Return the user with roles and internal sectors, earliest binding first."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
            if row is None:
                return None
            role_rows = conn.execute(
                select(_roles.c.id, _roles.c.name)
                .select_from(_user_roles.join(_roles, _user_roles.c.role_id == _roles.c.id))
                .where(_user_roles.c.user_id == user_id)
                .order_by(_user_roles.c.created_at, _user_roles.c.id)
            ).fetchall()
            sec_rows = conn.execute(
                select(_internal_secs.c.id, _internal_secs.c.name, _internal_secs.c.dependency_id)
                .select_from(
                    _user_internal_secs.join(
                        _internal_secs, _user_internal_secs.c.internal_sec_id == _internal_secs.c.id
                    )
                )
                .where(_user_internal_secs.c.user_id == user_id)
                .order_by(_user_internal_secs.c.created_at, _user_internal_secs.c.id)
            ).fetchall()
        user = _row_to_user(row)
        user.roles = [Role(id=r.id, name=r.name) for r in role_rows]
        user.internal_secs = [_row_to_internal_sec(r) for r in sec_rows]
        return user

    def delete_user(self, user_id: int) -> bool:
        """Delete a user and every binding it owns in one transaction.

        Bindings are removed explicitly as well as through ON DELETE CASCADE,
        so engines without foreign key enforcement stay consistent.
        Returns True if the user existed.
        """
        with self.engine.begin() as conn:
            conn.execute(_user_roles.delete().where(_user_roles.c.user_id == user_id))
            conn.execute(_user_internal_secs.delete().where(_user_internal_secs.c.user_id == user_id))
            result = conn.execute(_users.delete().where(_users.c.id == user_id))
        return result.rowcount > 0

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        with self.engine.connect() as conn:
            conn.execute(select(1))
        return True

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _find_id(conn: Connection, table: Table, name: str) -> int | None:
    row = conn.execute(select(table.c.id).where(table.c.name == name)).fetchone()
    return row.id if row is not None else None


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        username=row.username,
        email=row.email,
        hashed_password=row.hashed_password,
        created_at=row.created_at,
    )


def _row_to_internal_sec(row) -> InternalSec:
    return InternalSec(id=row.id, name=row.name, dependency_id=row.dependency_id)
