"""Tests for conversation state."""

import pytest
from services.chat_state import ChatSession, ChatState, ConversationStore


class TestChatSession:
    """Test suite for ChatSession."""

    def test_submit_creates_user_and_placeholder(self):
        session = ChatSession()
        message_id = session.submit("Review please")

        assert session.state == ChatState.SUBMITTING
        assert [m.role for m in session.messages] == ["user", "assistant"]
        assert session.messages[1].id == message_id
        assert session.messages[1].content == ""

    def test_submit_without_text_only_adds_placeholder(self):
        session = ChatSession()
        session.submit("")
        assert [m.role for m in session.messages] == ["assistant"]

    def test_chunks_accumulate_into_one_message(self):
        session = ChatSession()
        message_id = session.submit("hi")
        chunks = ["The ", "loop ", "is ", "off ", "by one."]

        for chunk in chunks:
            session.append_chunk(message_id, chunk)
            assert session.state == ChatState.STREAMING
        session.complete()

        assistants = [m for m in session.messages if m.role == "assistant"]
        assert len(assistants) == 1
        assert assistants[0].id == message_id
        assert assistants[0].content == "".join(chunks)
        assert session.state == ChatState.IDLE

    def test_submit_is_noop_while_busy(self):
        session = ChatSession()
        message_id = session.submit("first")
        assert session.submit("second") is None

        session.append_chunk(message_id, "x")
        assert session.submit("third") is None
        assert len(session.messages) == 2

    def test_failure_keeps_partial_output(self):
        session = ChatSession()
        message_id = session.submit("hi")
        session.append_chunk(message_id, "partial")
        session.fail("connection dropped")

        assert session.state == ChatState.ERRORED
        assert session.last_error == "connection dropped"
        assert session.messages[-1].content == "partial"
        assert session.submit("retry") is None

        session.acknowledge_error()
        assert session.state == ChatState.IDLE
        assert session.submit("retry") is not None

    def test_append_to_wrong_message_raises(self):
        session = ChatSession()
        session.submit("hi")
        with pytest.raises(ValueError):
            session.append_chunk("not-the-placeholder", "x")

    def test_append_after_complete_raises(self):
        session = ChatSession()
        message_id = session.submit("hi")
        session.complete()
        with pytest.raises(ValueError):
            session.append_chunk(message_id, "late")

    def test_history(self):
        session = ChatSession()
        message_id = session.submit("hi")
        session.append_chunk(message_id, "hello")
        session.complete()

        assert session.history() == [
            {"role": "user", "content": "hi"},
            {"role": "assistant", "content": "hello"},
        ]


class TestConversationStore:
    """Test suite for ConversationStore."""

    def test_create_get_delete(self):
        store = ConversationStore()
        session = store.create_conversation(title="PR 42")

        assert store.get_conversation(session.id) is session
        assert store.list_conversations()[0]["title"] == "PR 42"
        assert store.delete_conversation(session.id) is True
        assert store.get_conversation(session.id) is None
        assert store.delete_conversation(session.id) is False

    def test_get_all_streaming(self):
        store = ConversationStore()
        busy = store.create_conversation()
        store.create_conversation()
        busy.submit("hi")

        streaming = store.get_all_streaming()
        assert list(streaming) == [busy.id]
        assert streaming[busy.id]["state"] == "submitting"
