from capture_assistant.session import GREETING, ChatSession, SessionStore


def test_load_seeds_greeting_once(tmp_path):
    db_path = tmp_path / "chat.db"
    session = ChatSession(SessionStore(db_path))
    messages = session.load()
    assert [message.text for message in messages] == [GREETING]
    assert messages[0].sender == "ai"
    session.store.close()

    reopened = ChatSession(SessionStore(db_path))
    assert [message.text for message in reopened.load()] == [GREETING]
    reopened.store.close()


def test_save_keeps_order_without_duplicates(tmp_path):
    db_path = tmp_path / "chat.db"
    session = ChatSession(SessionStore(db_path))
    session.load()
    session.add_user("first")
    session.add_assistant("second")
    session.save()
    session.save()
    session.store.close()

    restored = SessionStore(db_path).load()
    assert [(m.sender, m.text) for m in restored] == [("ai", GREETING), ("user", "first"), ("ai", "second")]
    assert restored[1].role == "user"
    assert restored[2].role == "assistant"


def test_clear_resets_to_greeting():
    session = ChatSession(SessionStore())
    session.load()
    session.add_user("hello")
    session.save()
    session.clear()
    assert [message.text for message in session.messages] == [GREETING]
    assert [message.text for message in session.store.load()] == [GREETING]
