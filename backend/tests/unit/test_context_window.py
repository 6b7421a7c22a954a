"""
Unit tests for context selection and reply formatting.
"""

from harmony.models.chat import ChatMessage, ReplyContextEntry
from harmony.models.enums import ConcreteStyle
from harmony.services.context_window import (
    DATA_CONTEXT_MESSAGE_ID,
    DataSnippetBuffer,
    ReplyContext,
    format_with_replies,
    select_context,
)

DATA_BLOCK = '```json\n{"x": [1, 2, 3]}\n```'


def _messages(contents: list[str]) -> list[ChatMessage]:
    return [
        ChatMessage(id=f"m{i:02d}", content=content, is_user=i % 2 == 0, timestamp=1_000 + i)
        for i, content in enumerate(contents)
    ]


def _entry(message_id: str, content: str = "text") -> ReplyContextEntry:
    return ReplyContextEntry(message_id=message_id, content=content, timestamp=1)


class TestSelectContext:
    def test_default_window_is_last_four(self):
        messages = _messages([f"plain {i}" for i in range(10)])

        context = select_context(messages, ConcreteStyle.CONCISE)

        assert [m.id for m in context] == ["m06", "m07", "m08", "m09"]

    def test_short_history_is_kept_whole(self):
        messages = _messages(["a", "b"])

        assert select_context(messages, ConcreteStyle.TECHNICAL) == messages

    def test_mathematical_includes_earlier_data_message(self):
        contents = [f"plain {i}" for i in range(10)]
        contents[2] = f"Here is the data\n{DATA_BLOCK}"
        messages = _messages(contents)

        context = select_context(messages, ConcreteStyle.MATHEMATICAL)

        assert [m.id for m in context] == ["m02", "m04", "m05", "m06", "m07", "m08", "m09"]

    def test_mathematical_keeps_at_most_four_data_messages(self):
        contents = [f"data {i}\n{DATA_BLOCK}" for i in range(6)] + [f"plain {i}" for i in range(6)]
        messages = _messages(contents)

        context = select_context(messages, ConcreteStyle.MATHEMATICAL)

        assert [m.id for m in context[:4]] == ["m02", "m03", "m04", "m05"]
        assert len(context) == 10

    def test_data_messages_ignored_outside_mathematical(self):
        contents = [f"plain {i}" for i in range(10)]
        contents[2] = DATA_BLOCK
        messages = _messages(contents)

        context = select_context(messages, ConcreteStyle.CONCISE)

        assert "m02" not in [m.id for m in context]

    def test_snippet_summary_when_no_earlier_data(self):
        messages = _messages([f"plain {i}" for i in range(8)])
        buffer = DataSnippetBuffer()
        buffer.add('{"a": 1}')
        buffer.add('{"b": 2}')

        context = select_context(messages, ConcreteStyle.MATHEMATICAL, buffer)

        assert context[0].id == DATA_CONTEXT_MESSAGE_ID
        assert '{"a": 1}' in context[0].content
        assert '{"b": 2}' in context[0].content
        assert [m.id for m in context[1:]] == ["m02", "m03", "m04", "m05", "m06", "m07"]

    def test_no_summary_without_snippets(self):
        messages = _messages([f"plain {i}" for i in range(8)])

        context = select_context(messages, ConcreteStyle.MATHEMATICAL, DataSnippetBuffer())

        assert len(context) == 6


class TestDataSnippetBuffer:
    def test_fifo_eviction(self):
        buffer = DataSnippetBuffer()
        for i in range(12):
            buffer.add(f'{{"n": {i}}}')

        assert len(buffer) == 10
        assert buffer.recent(3) == ['{"n": 9}', '{"n": 10}', '{"n": 11}']

    def test_duplicates_are_ignored(self):
        buffer = DataSnippetBuffer()
        buffer.add("[1]")
        buffer.add("[1]")

        assert len(buffer) == 1

    def test_add_from_messages_extracts_blocks(self):
        buffer = DataSnippetBuffer()
        buffer.add_from_messages(
            _messages([DATA_BLOCK, "```python\nprint(1)\n```", "```\n[1, 2]\n```", "no code"])
        )

        assert buffer.recent(10) == ['{"x": [1, 2, 3]}', "[1, 2]"]


class TestReplyContext:
    def test_fourth_entry_evicts_oldest(self):
        context = ReplyContext()
        for message_id in ["a", "b", "c", "d"]:
            context.add(_entry(message_id))

        assert [e.message_id for e in context.entries] == ["b", "c", "d"]

    def test_duplicate_replaces(self):
        context = ReplyContext()
        context.add(_entry("a", "old"))
        context.add(_entry("b"))
        context.add(_entry("a", "new"))

        assert len(context) == 2
        assert [(e.message_id, e.content) for e in context.entries] == [("b", "text"), ("a", "new")]

    def test_remove_and_clear(self):
        context = ReplyContext()
        context.add(_entry("a"))
        context.add(_entry("b"))

        context.remove("a")
        assert [e.message_id for e in context.entries] == ["b"]

        context.clear()
        assert len(context) == 0
        assert not context


class TestFormatWithReplies:
    def test_no_replies_returns_content(self):
        assert format_with_replies("question", [], ConcreteStyle.CONCISE) == "question"

    def test_reply_labels(self):
        text = format_with_replies(
            "what next?",
            [_entry("a", "first"), _entry("b", "second")],
            ConcreteStyle.CONCISE,
        )

        assert text == "[Reply 1]: first\n\n[Reply 2]: second\n\n[New Question]: what next?"

    def test_reply_truncated_to_200(self):
        text = format_with_replies("q", [_entry("a", "x" * 300)], ConcreteStyle.CONCISE)

        assert text.startswith("[Reply 1]: " + "x" * 200 + "...")

    def test_data_reference_under_mathematical(self):
        content = DATA_BLOCK + "y" * 600

        text = format_with_replies("q", [_entry("a", content)], ConcreteStyle.MATHEMATICAL)

        first_line = text.split("\n\n[New Question]")[0]
        assert first_line.startswith("[Data Reference 1]: ")
        assert first_line == "[Data Reference 1]: " + content[:500] + "..."

    def test_data_block_is_plain_reply_outside_mathematical(self):
        text = format_with_replies("q", [_entry("a", DATA_BLOCK)], ConcreteStyle.TECHNICAL)

        assert text.startswith("[Reply 1]: ")
