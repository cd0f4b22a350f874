"""Unit tests for UserRepository."""

from __future__ import annotations

import threading
from datetime import datetime, timezone

import pytest

from tests.factories.user import UserFactory
from useradmin.models.user import User
from useradmin.repositories.user import UserRepository
from useradmin.services._shared.context import ServiceContext
from useradmin.services._shared.errors import CanceledError, ConflictError
from useradmin.services.users.dto import SearchUserQuery


class TestUserRepository:
    """Ensure ``UserRepository`` performs core persistence operations."""

    @pytest.fixture()
    def repo(self, database):
        return UserRepository(database)

    def test_create_assigns_id(self, repo, ctx, session):
        user = UserFactory.build(login_name="alice")
        created = repo.create(ctx, user)
        session.commit()

        assert created.id is not None
        assert repo.get_by_id(ctx, created.id).login_name == "alice"

    def test_create_duplicate_login_raises_conflict(self, repo, ctx, session):
        UserFactory(login_name="alice")

        with pytest.raises(ConflictError) as excinfo:
            repo.create(ctx, UserFactory.build(login_name="alice"))
        session.rollback()

        assert "alice" in str(excinfo.value)
        assert repo.count(ctx) == 1

    def test_create_duplicate_uuid_names_uuid(self, repo, ctx, session):
        existing = UserFactory(login_name="first")

        with pytest.raises(ConflictError, match="uuid"):
            repo.create(ctx, UserFactory.build(login_name="second", uuid=existing.uuid))
        session.rollback()

    def test_get_by_id_missing_returns_none(self, repo, ctx):
        assert repo.get_by_id(ctx, 999) is None

    def test_get_by_login_and_is_taken(self, repo, ctx):
        UserFactory(login_name="bob")

        assert repo.get_by_login(ctx, "bob") is not None
        assert repo.get_by_login(ctx, "nobody") is None
        assert repo.is_user_taken(ctx, "bob")
        assert repo.is_user_taken(ctx, " bob ")
        assert not repo.is_user_taken(ctx, "nobody")

    def test_search_paginates_by_id(self, repo, ctx):
        users = [UserFactory() for _ in range(5)]

        page = repo.search(ctx, SearchUserQuery(page=2, per_page=2))

        assert page.total == 5
        assert [u.id for u in page.items] == [users[2].id, users[3].id]

    def test_search_past_last_page_is_empty(self, repo, ctx):
        UserFactory.create_batch(3)

        page = repo.search(ctx, SearchUserQuery(page=5, per_page=2))

        assert page.items == []
        assert page.total == 3

    def test_search_filters(self, repo, ctx):
        UserFactory(login_name="alice", first_name="Alice", last_name="Smith", status="active")
        UserFactory(login_name="carol", first_name="Carol", last_name="Jones", status="inactive")
        UserFactory(login_name="dave", first_name="Dave", last_name="Alison", status="pending")

        by_status = repo.search(ctx, SearchUserQuery(page=1, per_page=10, status="inactive"))
        assert [u.login_name for u in by_status.items] == ["carol"]

        by_email = repo.search(
            ctx, SearchUserQuery(page=1, per_page=10, email="ALICE@example.com")
        )
        assert [u.login_name for u in by_email.items] == ["alice"]

        by_name = repo.search(ctx, SearchUserQuery(page=1, per_page=10, name="ali"))
        assert sorted(u.login_name for u in by_name.items) == ["alice", "dave"]
        assert by_name.total == 2

    def test_update_touches_only_names(self, repo, ctx, session):
        user = UserFactory(first_name="Old", last_name="Name", status="active")
        original_hash = user.password_hash
        now = datetime(2030, 1, 1, tzinfo=timezone.utc)

        rows = repo.update(
            ctx, user.id, first_name="New", middle_name="Q", last_name="Person", updated_at=now
        )
        session.commit()
        session.expire_all()

        refreshed = repo.get_by_id(ctx, user.id)
        assert rows == 1
        assert (refreshed.first_name, refreshed.middle_name, refreshed.last_name) == (
            "New",
            "Q",
            "Person",
        )
        assert refreshed.status == "active"
        assert refreshed.password_hash == original_hash
        assert refreshed.updated_at == now

    def test_update_status_and_password(self, repo, ctx, session):
        user = UserFactory(status="active")
        now = datetime(2030, 1, 1, tzinfo=timezone.utc)
        new_hash = User.hash_password("an0ther-pass", user.salt)

        assert repo.update_status(ctx, user.id, status="inactive", updated_at=now) == 1
        assert repo.update_password(ctx, user.id, password_hash=new_hash, updated_at=now) == 1
        session.commit()
        session.expire_all()

        refreshed = repo.get_by_id(ctx, user.id)
        assert refreshed.status == "inactive"
        assert refreshed.verify_password("an0ther-pass")

    def test_update_missing_row_matches_nothing(self, repo, ctx):
        now = datetime(2030, 1, 1, tzinfo=timezone.utc)
        assert repo.update_status(ctx, 999, status="inactive", updated_at=now) == 0

    def test_non_whitelisted_column_rejected(self, repo, ctx):
        user = UserFactory()
        with pytest.raises(ValueError):
            repo.update_columns(ctx, user.id, {"login_name": "hijack"})

    def test_canceled_context_aborts_before_query(self, repo):
        stop = threading.Event()
        stop.set()
        with pytest.raises(CanceledError):
            repo.get_by_id(ServiceContext(cancel_event=stop), 1)

    def test_expired_deadline_aborts(self, repo):
        with pytest.raises(CanceledError):
            repo.search(ServiceContext(deadline=0.0), SearchUserQuery(page=1, per_page=1))
