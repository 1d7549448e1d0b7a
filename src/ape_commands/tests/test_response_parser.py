"""
Test suite for decoding LLM replies.
"""

import pytest

from ape_commands.core.commands.types import ConversionSource
from ape_commands.nlp.response_parser import (
    extract_json_object, first_balanced_object, parse_conversion,
)
from ape_commands.utils.error_handling import ConversionError


class TestExtractJsonObject:
    """Test the fenced block -> balanced object -> failure recovery order."""

    def test_plain_object(self):
        assert extract_json_object('{"command": "list"}') == {"command": "list"}

    def test_fenced_block_preferred(self):
        text = 'Sure {"ignored": true}\n```json\n{"command": "list"}\n```'
        assert extract_json_object(text) == {"command": "list"}

    def test_fence_without_language(self):
        assert extract_json_object('```\n{"command": "issue"}\n```') == {"command": "issue"}

    def test_object_embedded_in_prose(self):
        text = 'Here is my answer: {"command": "search", "args": ["a}b"]} hope it helps'
        assert extract_json_object(text) == {"command": "search", "args": ["a}b"]}

    def test_invalid_fence_falls_through_to_balanced_object(self):
        text = '```json\nnot json\n```\n{"command": "list"}'
        assert extract_json_object(text) == {"command": "list"}

    @pytest.mark.parametrize("text", ["", "   ", "no json here", "[1, 2, 3]", "{broken"])
    def test_failure(self, text):
        with pytest.raises(ConversionError):
            extract_json_object(text)

    def test_balanced_object_ignores_braces_in_strings(self):
        assert first_balanced_object('x {"a": "}{"} y') == '{"a": "}{"}'
        assert first_balanced_object("no braces") is None


class TestParseConversion:
    """Test schema validation of the decoded object."""

    def test_full_reply(self):
        reply = """```json
{
  "command": "@jira:search",
  "args": ["login bug"],
  "confidence": 0.85,
  "explanation": "user wants to search",
  "alternatives": [
    {"command": "list", "confidence": 0.4},
    {"command": "issue", "args": "PROJ-1", "confidence": 0.6},
    {"command": "create", "confidence": 0.95}
  ]
}
```"""
        conversion = parse_conversion(reply, ["list", "issue", "create", "search"])

        assert conversion.command == "search"
        assert conversion.args == ["login bug"]
        assert conversion.confidence == pytest.approx(0.85)
        assert conversion.source == ConversionSource.LLM
        assert [alt.command for alt in conversion.alternatives] == ["issue", "list"]
        assert conversion.alternatives[0].args == ["PROJ-1"]

    def test_args_coerced_to_strings(self):
        conversion = parse_conversion('{"command": "log", "args": [5, true], "confidence": 0.7}')
        assert conversion.args == ["5", "true"]

    def test_missing_confidence_rejected(self):
        with pytest.raises(ConversionError):
            parse_conversion('{"command": "list"}')

    def test_out_of_range_confidence_rejected(self):
        with pytest.raises(ConversionError):
            parse_conversion('{"command": "list", "confidence": 1.5}')

    def test_empty_command_rejected(self):
        with pytest.raises(ConversionError):
            parse_conversion('{"command": "", "confidence": 0.5}')

    def test_unknown_command_rejected(self):
        with pytest.raises(ConversionError) as exc_info:
            parse_conversion('{"command": "drop", "confidence": 0.9}', ["list"])
        assert exc_info.value.details["known_commands"] == ["list"]

    def test_known_commands_optional(self):
        assert parse_conversion('{"command": "anything", "confidence": 0.9}').command == "anything"
