"""
Test suite for language profiles, argument extractors and prompt building.
"""

import pytest

from ape_commands.core.commands.registry import build_usage
from ape_commands.nlp import extractors
from ape_commands.nlp.patterns import HeuristicMatch, build_profile
from ape_commands.nlp.profiles import builtin_profiles, get_builtin_profile
from ape_commands.nlp.prompts import build_conversion_prompt, format_catalog


class TestExtractors:
    """Test argument extraction from free text."""

    def test_quoted(self):
        assert extractors.extract_quoted('find "report.pdf" and \'notes\'') == ["report.pdf", "notes"]

    def test_commit_message_prefers_quotes(self):
        assert extractors.extract_commit_message('커밋해 "fix login" 메시지: other') == ["fix login"]

    def test_commit_message_label(self):
        assert extractors.extract_commit_message("commit with message: tidy up") == ["tidy up"]
        assert extractors.extract_commit_message("just commit") == []

    def test_file_paths(self):
        assert extractors.extract_file_paths("src/app/main.py 파일 diff 보여줘") == ["src/app/main.py"]

    def test_issue_key(self):
        assert extractors.extract_issue_key("look at abc-42 please") == ["ABC-42"]
        assert extractors.extract_issue_key("no key") == []

    @pytest.mark.parametrize("text,expected", [
        ("최근 5개 로그", ["5"]),
        ("last 20 commits", ["20"]),
        ("version 1.5", []),
        ("PROJ-12", []),
        ("nothing", []),
    ])
    def test_number(self, text, expected):
        assert extractors.extract_number(text) == expected


class TestProfiles:
    """Test profile matching rules."""

    def test_score_formula(self):
        profile = build_profile("demo", {"status": ["status"]}, default_command="status")
        match = profile.match("Show STATUS now")

        assert match.command == "status"
        assert match.phrase == "status"
        assert match.score == pytest.approx(len("status") / len("show status now"))
        assert match.confidence(0.8) == pytest.approx(match.score * 0.8)

    def test_first_phrase_wins_ties(self):
        profile = build_profile("demo", {"first": ["ab"], "second": ["cd"]}, default_command="first")
        assert profile.match("ab cd").command == "first"

    def test_no_match(self):
        profile = build_profile("demo", {"status": ["status"]}, default_command="status")
        assert profile.match("hello") is None
        assert profile.match("   ") is None

    def test_refine_hook(self):
        def refine(normalized, original, match):
            return HeuristicMatch(command="forced", phrase="", score=1.0)

        profile = build_profile("demo", {"status": ["status"]}, default_command="status", refine=refine)
        assert profile.match("anything").command == "forced"

    def test_builtin_profiles(self):
        profiles = builtin_profiles()
        assert set(profiles) == {"git", "jira", "swdp", "pocket"}
        assert get_builtin_profile("JIRA").default_command == "list"
        assert get_builtin_profile("git").default_command == "status"
        assert get_builtin_profile("nothing") is None

    def test_git_log_count(self):
        match = get_builtin_profile("git").match("최근 로그 10개 보여줘")
        assert match.command == "log"
        assert match.args == ["10"]

    def test_pocket_grep_vs_find(self):
        profile = get_builtin_profile("pocket")
        assert profile.match('"TODO" 내용 검색').command == "grep"


class TestPrompts:
    """Test LLM prompt construction."""

    def test_catalog_lines(self):
        catalog = [build_usage("jira", "list", {"description": "List issues"}), build_usage("jira", "issue")]
        assert format_catalog(catalog) == (
            "- list: List issues (@jira:list)\n"
            "- issue: no description (@jira:issue)"
        )
        assert format_catalog([]) == "- (no commands registered)"

    def test_prompt_contents(self):
        hint = HeuristicMatch(command="list", phrase="목록", score=0.4)
        prompt = build_conversion_prompt(
            domain="jira",
            user_input="  목록 줘  ",
            catalog=[build_usage("jira", "list", {"description": "List issues"})],
            guidance="- prefer list",
            heuristic=hint,
        )

        assert 'the "jira" domain' in prompt
        assert "- list: List issues" in prompt
        assert "- prefer list" in prompt
        assert "USER REQUEST: 목록 줘" in prompt
        assert "'목록' suggests 'list'" in prompt
        assert '"command":' in prompt

    def test_prompt_without_guidance_or_hint(self):
        prompt = build_conversion_prompt("git", "status please", [])
        assert "- No extra rules." in prompt
        assert "KEYWORD HINT" not in prompt
