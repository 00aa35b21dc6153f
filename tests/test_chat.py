"""Tests for the memory-backed chat session."""

from unittest.mock import MagicMock

import httpx
import pytest

from permem.chat import HISTORY_LIMIT, SYSTEM_PROMPT, ChatSession, build_parser
from permem.exceptions import PermemError
from permem.models import ExtractResponse, ExtractedMemory, InjectResponse


@pytest.fixture
def mock_memory():
    """Mock Permem client that always recommends injection."""
    memory = MagicMock()
    memory.inject.return_value = InjectResponse(
        memories=[],
        injection_text="<relevant_memories>\n- Name is Ada\n</relevant_memories>",
        should_inject=True,
    )
    memory.extract.return_value = ExtractResponse(
        should_extract=True,
        extracted=[ExtractedMemory(id="m1", summary="Name is Ada", type="core", action="NEW")],
        skipped_duplicates=[],
    )
    return memory


@pytest.fixture
def mock_llm():
    """Mock OpenAI client returning a fixed reply."""
    llm = MagicMock()
    response = MagicMock()
    response.choices = [MagicMock()]
    response.choices[0].message.content = "Nice to meet you, Ada!"
    llm.chat.completions.create.return_value = response
    return llm


@pytest.fixture
def session(mock_memory, mock_llm):
    return ChatSession(mock_memory, mock_llm, user_id="ada", model="test-model", extract_message_threshold=4)


def test_send_injects_memories(session, mock_memory, mock_llm):
    """Test that injected text lands in the system prompt."""
    reply = session.send("What's my name?")

    assert reply == "Nice to meet you, Ada!"
    mock_memory.inject.assert_called_once_with(
        "What's my name?",
        user_id="ada",
        context_length=0,
        conversation_id=session.conversation_id,
    )
    messages = mock_llm.chat.completions.create.call_args.kwargs["messages"]
    assert messages[0]["role"] == "system"
    assert "Name is Ada" in messages[0]["content"]
    assert messages[-1] == {"role": "user", "content": "What's my name?"}
    assert mock_llm.chat.completions.create.call_args.kwargs["model"] == "test-model"


def test_send_respects_should_inject(session, mock_memory, mock_llm):
    """Test that injection text is ignored when the server declines."""
    mock_memory.inject.return_value = InjectResponse(injection_text="ignored", should_inject=False)

    session.send("Hi")

    messages = mock_llm.chat.completions.create.call_args.kwargs["messages"]
    assert messages[0]["content"] == SYSTEM_PROMPT


def test_send_passes_context_length(session, mock_memory):
    session.send("abcd")
    session.send("Hi")

    # "abcd" -> 1 token, reply (22 chars) -> 6 tokens
    assert mock_memory.inject.call_args.kwargs["context_length"] == 7


def test_inject_failure_does_not_break_chat(session, mock_memory, mock_llm):
    mock_memory.inject.side_effect = httpx.ConnectError("Connection refused")

    reply = session.send("Hi")

    assert reply == "Nice to meet you, Ada!"
    messages = mock_llm.chat.completions.create.call_args.kwargs["messages"]
    assert messages[0]["content"] == SYSTEM_PROMPT


def test_send_empty_message_raises_error(session):
    with pytest.raises(ValueError, match="Message cannot be empty"):
        session.send("   ")


def test_extraction_waits_for_threshold(session, mock_memory):
    """Test that extract runs only after enough new messages."""
    session.send("Hi")
    mock_memory.extract.assert_not_called()
    assert session.last_extraction is None

    session.send("My name is Ada")
    mock_memory.extract.assert_called_once()
    assert mock_memory.extract.call_args.kwargs["user_id"] == "ada"
    assert len(mock_memory.extract.call_args.args[0]) == 4
    assert session.last_extraction.extracted[0].summary == "Name is Ada"
    assert session.last_extraction_count == 4


def test_forced_extraction(session, mock_memory):
    session.send("Hi")

    result = session.extract_memories(force=True)

    assert result is not None
    mock_memory.extract.assert_called_once()


def test_extraction_skipped_without_messages(session, mock_memory):
    assert session.extract_memories(force=True) is None
    mock_memory.extract.assert_not_called()


def test_extraction_failure_is_swallowed(session, mock_memory):
    mock_memory.extract.side_effect = PermemError("Server error", 500)
    session.send("Hi")

    assert session.extract_memories(force=True) is None
    assert session.last_extraction_count == 0


def test_history_trimmed_after_extraction(mock_memory, mock_llm):
    """Test that history is cut to the last messages after extraction."""
    session = ChatSession(mock_memory, mock_llm, user_id="ada", extract_message_threshold=100)
    for i in range(6):
        session.send(f"Message {i}")
    assert len(session.messages) == 12

    session.extract_memories(force=True)

    assert len(session.messages) == HISTORY_LIMIT
    assert session.last_extraction_count == HISTORY_LIMIT
    assert session.messages[-1].role == "assistant"


def test_unproductive_extraction_keeps_history(session, mock_memory):
    mock_memory.extract.return_value = ExtractResponse(should_extract=False)
    session.send("Hi")

    session.extract_memories(force=True)

    assert session.last_extraction_count == 0
    assert len(session.messages) == 2


def test_clear_starts_new_conversation(session):
    session.send("Hi")
    old_id = session.conversation_id

    session.clear()

    assert session.messages == []
    assert session.last_extraction_count == 0
    assert session.conversation_id != old_id


def test_parser_defaults(monkeypatch):
    from permem.config import get_settings

    monkeypatch.setenv("PERMEM_USER_ID", "env-user")
    get_settings.cache_clear()

    args = build_parser().parse_args([])

    assert args.user_id == "env-user"
    assert args.extract_every == 10
    assert args.verbose is False
