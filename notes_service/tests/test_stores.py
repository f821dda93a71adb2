import pytest
from sqlalchemy import event

from notes_service.errors import DuplicateUsername, Forbidden, NotFound, TokenInvalid, ValidationError
from notes_service.security import Identity
from notes_store.models import Note, User


@pytest.fixture
def alice(credential_store):
    user = credential_store.register("alice", "Alice", "alicepassword")
    return Identity(user_id=user.id, username=user.username)


@pytest.fixture
def bob(credential_store):
    user = credential_store.register("bob", "Bob", "bobpassword")
    return Identity(user_id=user.id, username=user.username)


def test_register_stores_hash_not_password(credential_store, db_session):
    credential_store.register("kcmaxwell", "K C Maxwell", "password123")
    stored = db_session.query(User).filter_by(username="kcmaxwell").one()
    assert stored.password_hash != "password123"
    assert stored.password_hash.startswith("$2")


def test_duplicate_username_regardless_of_other_fields(credential_store):
    credential_store.register("kcmaxwell", "K C Maxwell", "password123")
    with pytest.raises(DuplicateUsername):
        credential_store.register("kcmaxwell", "Somebody Else", "another-password")


def test_find_by_username(credential_store):
    assert credential_store.find_by_username("kcmaxwell") is None
    user = credential_store.register("kcmaxwell", "K C Maxwell", "password123")
    assert credential_store.find_by_username("kcmaxwell").id == user.id


def test_create_links_note_to_owner(note_store, credential_store, alice):
    note = note_store.create(alice, "HTML is easy", True)
    assert note.user_id == alice.user_id
    assert note.important is True
    assert note.created_at is not None
    owner = credential_store.get(alice.user_id)
    assert [n.id for n in owner.notes] == [note.id]


def test_owner_collection_keeps_creation_order(note_store, credential_store, alice):
    first = note_store.create(alice, "first note")
    second = note_store.create(alice, "second note")
    owner = credential_store.get(alice.user_id)
    assert [n.id for n in owner.notes] == [first.id, second.id]


@pytest.mark.parametrize("content", ["", "    ", "abcd"])
def test_create_too_short_persists_nothing(note_store, db_session, alice, content):
    with pytest.raises(ValidationError):
        note_store.create(alice, content)
    assert db_session.query(Note).count() == 0


def test_create_for_vanished_user(note_store):
    with pytest.raises(TokenInvalid):
        note_store.create(Identity(user_id=4242, username="ghost"), "orphaned note")


def test_list_all_is_public(note_store, alice, bob):
    note_store.create(alice, "alice's note")
    note_store.create(bob, "bob's note")
    assert [n.content for n in note_store.list_all()] == ["alice's note", "bob's note"]


def test_update_replaces_fields(note_store, alice):
    note = note_store.create(alice, "HTML is easy", True)
    updated = note_store.update(alice, note.id, "HTML is hard", False)
    assert updated.content == "HTML is hard"
    assert updated.important is False


def test_update_checks_existence_then_owner(note_store, alice, bob):
    note = note_store.create(alice, "HTML is easy")
    with pytest.raises(NotFound):
        note_store.update(bob, 999, "anything at all")
    with pytest.raises(Forbidden):
        note_store.update(bob, note.id, "bob was here")
    assert note_store.get(note.id).content == "HTML is easy"


def test_update_validates_content(note_store, alice):
    note = note_store.create(alice, "HTML is easy")
    with pytest.raises(ValidationError):
        note_store.update(alice, note.id, "")


def test_delete_by_owner(note_store, credential_store, alice):
    note = note_store.create(alice, "short lived")
    note_store.delete(alice, note.id)
    with pytest.raises(NotFound):
        note_store.get(note.id)
    assert credential_store.get(alice.user_id).notes == []


def test_delete_by_other_user_forbidden(note_store, alice, bob):
    note = note_store.create(alice, "keep me around")
    with pytest.raises(Forbidden):
        note_store.delete(bob, note.id)
    assert note_store.get(note.id).content == "keep me around"


def test_delete_absent_note_succeeds(note_store, alice):
    assert note_store.delete(alice, 12345) is None


def test_unique_index_backs_up_duplicate_check(credential_store, monkeypatch):
    credential_store.register("kcmaxwell", "K C Maxwell", "password123")
    # a concurrent registration that slipped past the lookup
    monkeypatch.setattr(credential_store, "find_by_username", lambda username: None)
    with pytest.raises(DuplicateUsername):
        credential_store.register("kcmaxwell", "Somebody Else", "another-password")
    monkeypatch.undo()

    assert credential_store.find_by_username("kcmaxwell").name == "K C Maxwell"
    assert credential_store.register("mluukkai", "Matti Luukkainen", "salainen").id is not None
    assert [u.username for u in credential_store.list_users()] == ["kcmaxwell", "mluukkai"]


def test_find_by_username_ignores_surrounding_whitespace(credential_store):
    user = credential_store.register("  kcmaxwell\t", "K C Maxwell", "password123")
    assert user.username == "kcmaxwell"
    assert credential_store.find_by_username(" kcmaxwell ").id == user.id


def test_content_is_stored_as_sent(note_store, alice):
    note = note_store.create(alice, "  padded note  ")
    assert note_store.get(note.id).content == "  padded note  "
    updated = note_store.update(alice, note.id, "\tstill padded\n")
    assert updated.content == "\tstill padded\n"


@pytest.mark.parametrize("note_id", [0, -1, 2 ** 63, 10 ** 20])
def test_ids_outside_storable_range(note_store, alice, note_id):
    with pytest.raises(NotFound):
        note_store.get(note_id)
    assert note_store.delete(alice, note_id) is None


def test_create_does_not_load_owner_collection(note_store, credential_store, engine, alice):
    for i in range(3):
        note_store.create(alice, f"existing note {i}")

    statements = []

    def record(conn, cursor, statement, parameters, context, executemany):
        statements.append(statement)

    event.listen(engine, "before_cursor_execute", record)
    try:
        note_store.create(alice, "one more note")
    finally:
        event.remove(engine, "before_cursor_execute", record)

    assert statements
    assert not any("= notes.user_id" in s for s in statements)
    assert len(credential_store.get(alice.user_id).notes) == 4
