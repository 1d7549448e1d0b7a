"""
Natural-language conversion for At-commands.

    converter = NaturalLanguageConverter(llm=client)
    converter.register_profile(issue_tracker_profile())
    conversion = await converter.convert("jira", "이슈 목록 보여줘", catalog)
"""

from .converter import NaturalLanguageConverter
from .patterns import CommandPattern, DomainLanguageProfile, HeuristicMatch, build_profile
from .profiles import (
    version_control_profile,
    issue_tracker_profile,
    build_system_profile,
    file_store_profile,
    get_builtin_profile,
    builtin_profiles,
)
from .response_parser import extract_json_object, parse_conversion
from . import extractors

__all__ = [
    "NaturalLanguageConverter",
    "CommandPattern",
    "DomainLanguageProfile",
    "HeuristicMatch",
    "build_profile",
    "version_control_profile",
    "issue_tracker_profile",
    "build_system_profile",
    "file_store_profile",
    "get_builtin_profile",
    "builtin_profiles",
    "extract_json_object",
    "parse_conversion",
    "extractors",
]
