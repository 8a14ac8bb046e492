"""Tests for autosrc.commands: parse_command, parse_commands, load_batch."""

import pytest

from autosrc.commands import (
    REPLAY_KINDS,
    Add,
    Continue,
    Finish,
    Remove,
    Update,
    load_batch,
    parse_command,
    parse_commands,
)
from autosrc.errors import ParseError, ValidationError


class TestParseCommand:
    def test_add(self):
        cmd = parse_command({"add": {"path": "src/a.ts", "description": "d"}})
        assert cmd == Add(path="src/a.ts", description="d")
        assert cmd.kind == "add"

    def test_add_without_description_defaults_empty(self):
        assert parse_command({"add": {"path": "src/a.ts"}}).description == ""

    def test_update(self):
        cmd = parse_command({"update": {"path": "a.py", "content": "x = 1\n", "why": "init"}})
        assert isinstance(cmd, Update)
        assert cmd.content == "x = 1\n"
        assert cmd.why == "init"

    def test_update_keeps_non_string_content_for_interpreter(self):
        cmd = parse_command({"update": {"path": "a.json", "content": {"a": 1}, "why": "oops"}})
        assert cmd.content == {"a": 1}

    def test_remove(self):
        assert parse_command({"remove": {"path": "old.py"}}) == Remove(path="old.py")

    def test_finish(self):
        assert parse_command({"finish": "All files generated"}) == Finish(report="All files generated")

    def test_finish_non_string_raises(self):
        with pytest.raises(ValidationError, match="finish"):
            parse_command({"finish": {"report": "x"}})

    def test_missing_path_raises(self):
        with pytest.raises(ValidationError, match="path"):
            parse_command({"remove": {}})

    def test_blank_path_raises(self):
        with pytest.raises(ValidationError, match="path"):
            parse_command({"update": {"path": "  ", "content": "", "why": ""}})

    def test_payload_not_object_raises(self):
        with pytest.raises(ValidationError, match="must be an object"):
            parse_command({"add": "src/a.ts"})

    def test_unknown_key_raises(self):
        with pytest.raises(ValidationError, match="exactly one"):
            parse_command({"rename": {"path": "a"}})

    def test_two_keys_raises(self):
        with pytest.raises(ValidationError, match="exactly one"):
            parse_command({"add": {"path": "a"}, "remove": {"path": "a"}})

    def test_non_object_raises(self):
        with pytest.raises(ValidationError):
            parse_command(["add"])

    def test_continue_rejected_for_generator(self):
        with pytest.raises(ValidationError):
            parse_command({"continue": ["a.py"]})

    def test_continue_allowed_for_replay(self):
        cmd = parse_command({"continue": ["a.py", "b.py"]}, REPLAY_KINDS)
        assert cmd == Continue(paths=("a.py", "b.py"))

    def test_add_rejected_for_replay(self):
        with pytest.raises(ValidationError):
            parse_command({"add": {"path": "a.py"}}, REPLAY_KINDS)


class TestParseCommands:
    def test_preserves_order(self):
        cmds = parse_commands([
            {"add": {"path": "a", "description": ""}},
            {"remove": {"path": "b"}},
            {"finish": "done"},
        ])
        assert [c.kind for c in cmds] == ["add", "remove", "finish"]

    def test_not_a_list_raises_parse_error(self):
        with pytest.raises(ParseError, match="array"):
            parse_commands({"add": {"path": "a"}})

    def test_bad_element_reports_index(self):
        with pytest.raises(ValidationError, match="Command 1"):
            parse_commands([{"finish": "ok"}, {"bogus": 1}])

    def test_empty_batch(self):
        assert parse_commands([]) == []


class TestLoadBatch:
    def test_valid_json(self):
        cmds = load_batch('[{"finish": "done"}]')
        assert cmds == [Finish(report="done")]

    def test_invalid_json_raises_parse_error(self):
        with pytest.raises(ParseError, match="not valid JSON"):
            load_batch("Here are your files: [")

    def test_json_object_raises_parse_error(self):
        with pytest.raises(ParseError):
            load_batch('{"finish": "done"}')

    def test_raw_batch_with_fenced_content(self):
        text = '[{"update": {"path": "README.md", "content": "```\\nls\\n```", "why": "docs"}}]'
        cmds = load_batch(text)
        assert cmds[0].content == "```\nls\n```"
