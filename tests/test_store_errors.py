"""Store error translation tests."""

from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from rbac_core.exceptions import (
    ConflictError,
    HasDependentsError,
    RoleAlreadyExistsError,
    RoleNotFoundError,
    StoreError,
)
from rbac_core.utils.store_errors import (
    is_foreign_key_violation,
    is_unique_violation,
    store_transaction,
    translate_store_error,
)


class DriverError(Exception):
    """Driver exception exposing a SQLSTATE the way asyncpg-backed errors do."""

    def __init__(self, message: str, pgcode: str | None = None) -> None:
        super().__init__(message)
        self.pgcode = pgcode


def integrity_error(message: str, pgcode: str | None = None) -> IntegrityError:
    return IntegrityError("INSERT INTO roles ...", {}, DriverError(message, pgcode))


class TestClassification:
    """SQLSTATE first, message text as fallback."""

    def test_sqlstate_codes(self) -> None:
        assert is_unique_violation(integrity_error("whatever", "23505")) is True
        assert is_foreign_key_violation(integrity_error("whatever", "23503")) is True
        assert is_unique_violation(integrity_error("duplicate key", "23503")) is False

    def test_message_fallback(self) -> None:
        assert is_unique_violation(integrity_error("UNIQUE constraint failed: roles.name")) is True
        assert is_foreign_key_violation(integrity_error("FOREIGN KEY constraint failed")) is True

    def test_non_integrity_errors(self) -> None:
        error = OperationalError("SELECT 1", {}, DriverError("unique timeout"))

        assert is_unique_violation(error) is False
        assert is_foreign_key_violation(error) is False


class TestTranslate:
    """Mapping to domain errors."""

    def test_conflict_default_and_factory(self) -> None:
        error = integrity_error("duplicate key value", "23505")

        assert type(translate_store_error(error, "create_role")) is ConflictError
        assert isinstance(
            translate_store_error(error, "create_role", on_conflict=lambda: RoleAlreadyExistsError("x")),
            RoleAlreadyExistsError,
        )

    def test_dependency(self) -> None:
        translated = translate_store_error(integrity_error("violates foreign key", "23503"), "delete_role")

        assert isinstance(translated, HasDependentsError)
        assert translated.reason == "has_dependents"

    def test_other_failures_are_sanitized(self) -> None:
        error = OperationalError(
            "SELECT * FROM roles",
            {},
            DriverError("could not connect to postgresql://rbac:secret@db:5432/rbac"),
        )

        translated = translate_store_error(error, "list_roles")

        assert isinstance(translated, StoreError)
        assert "secret" not in translated.message
        assert translated.details == {"operation": "list_roles"}


class TestStoreTransaction:
    """Commit on success, rollback on anything else."""

    async def test_commits(self) -> None:
        session = AsyncMock()

        async with store_transaction(session, "op"):
            pass

        session.commit.assert_awaited_once()
        session.rollback.assert_not_awaited()

    async def test_store_failure_is_translated(self) -> None:
        session = AsyncMock()

        with pytest.raises(RoleAlreadyExistsError):
            async with store_transaction(session, "op", on_conflict=lambda: RoleAlreadyExistsError("x")):
                raise integrity_error("UNIQUE constraint failed")

        session.rollback.assert_awaited_once()
        session.commit.assert_not_awaited()

    async def test_domain_error_rolls_back(self) -> None:
        session = AsyncMock()

        with pytest.raises(RoleNotFoundError):
            async with store_transaction(session, "op"):
                raise RoleNotFoundError("abc")

        session.rollback.assert_awaited_once()

    async def test_commit_failure_is_translated(self) -> None:
        session = AsyncMock()
        session.commit.side_effect = integrity_error("FOREIGN KEY constraint failed")

        with pytest.raises(HasDependentsError):
            async with store_transaction(session, "op"):
                pass

        session.rollback.assert_awaited_once()
