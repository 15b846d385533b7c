import pytest
from pytest_mock import MockerFixture
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from src.core.errors import PersistenceError
from src.users.crud import UserDirectory, get_user_by_id
from src.users.models import User


def test_upsert_creates_user_on_first_login(db_session: Session):
    directory = UserDirectory(db_session)

    user_id = directory.upsert("u1", "a@x.com", "A", "pic1")

    assert user_id == "u1"
    user = get_user_by_id(db_session, "u1")
    assert user.email == "a@x.com"
    assert user.name == "A"
    assert user.picture == "pic1"
    assert user.last_login is not None


def test_upsert_updates_existing_user_without_duplicates(db_session: Session):
    directory = UserDirectory(db_session)
    directory.upsert("u1", "a@x.com", "A", "pic1")
    first_login = get_user_by_id(db_session, "u1").last_login

    user_id = directory.upsert("u1", "a@x.com", "A2", "pic2")

    assert user_id == "u1"
    assert db_session.query(User).count() == 1
    user = get_user_by_id(db_session, "u1")
    assert user.name == "A2"
    assert user.picture == "pic2"
    assert user.last_login >= first_login


def test_upsert_is_idempotent_for_identical_calls(db_session: Session):
    directory = UserDirectory(db_session)
    for _ in range(3):
        directory.upsert("u1", "a@x.com", "A", "pic1")
    assert db_session.query(User).count() == 1


def test_email_taken_by_another_subject_is_a_persistence_error(db_session: Session):
    directory = UserDirectory(db_session)
    directory.upsert("u1", "a@x.com", "A", "pic1")

    with pytest.raises(PersistenceError):
        directory.upsert("u2", "a@x.com", "Impostor", "")

    assert db_session.query(User).count() == 1


def test_commit_failure_is_wrapped(db_session: Session, mocker: MockerFixture):
    directory = UserDirectory(db_session)
    mocker.patch.object(db_session, "commit", side_effect=OperationalError("INSERT", {}, Exception("db down")))
    rollback = mocker.spy(db_session, "rollback")

    with pytest.raises(PersistenceError):
        directory.upsert("u1", "a@x.com", "A", "pic1")
    rollback.assert_called_once()
