import pytest

from ai_image_editor.domain.errors import SessionNotFoundError
from ai_image_editor.infrastructure.sessions.session_repository import SessionRepository


@pytest.fixture()
def repo():
    return SessionRepository(store={})


def test_create_and_get(repo):
    session = repo.create()
    assert repo.get(session.id) is session
    assert session.state.value == "empty"


def test_missing_session(repo):
    with pytest.raises(SessionNotFoundError):
        repo.get("missing")


def test_list_newest_first_and_delete(repo):
    first = repo.create()
    second = repo.create()
    assert {s.id for s in repo.list_all()} == {first.id, second.id}
    assert repo.delete(first.id) is True
    assert repo.delete(first.id) is False
    assert [s.id for s in repo.list_all()] == [second.id]
