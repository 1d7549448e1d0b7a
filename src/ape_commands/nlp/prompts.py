"""
Prompt construction for the LLM tier of the converter.
"""

from typing import Iterable, Optional

from langchain_core.prompts import PromptTemplate

from ..core.commands.types import CommandUsage
from .patterns import HeuristicMatch


CONVERSION_TEMPLATE = """You translate a user's request into exactly one command of the "{domain}" domain.

AVAILABLE COMMANDS:
{catalog}

DOMAIN RULES:
{guidance}

USER REQUEST: {user_input}
{hint}
Choose only from the available commands. Put every argument the command needs in "args" as strings.

Respond with JSON only:
{{
    "command": "command id from the list",
    "args": ["argument", "..."],
    "confidence": 0.0-1.0,
    "explanation": "one sentence on why",
    "alternatives": [{{"command": "other id", "args": [], "confidence": 0.0-1.0}}]
}}

JSON response:"""

CONVERSION_PROMPT = PromptTemplate.from_template(CONVERSION_TEMPLATE)


def format_catalog(catalog: Iterable[CommandUsage]) -> str:
    """One ``- id: description (syntax)`` line per command."""
    lines = []
    for usage in catalog:
        line = f"- {usage.command}: {usage.description or 'no description'}"
        if usage.syntax:
            line += f" ({usage.syntax})"
        lines.append(line)
    return "\n".join(lines) if lines else "- (no commands registered)"


def build_conversion_prompt(
    domain: str,
    user_input: str,
    catalog: Iterable[CommandUsage],
    guidance: str = "",
    heuristic: Optional[HeuristicMatch] = None,
) -> str:
    hint = ""
    if heuristic is not None:
        args = f" with args {heuristic.args}" if heuristic.args else ""
        hint = (
            f"\nKEYWORD HINT: the phrase '{heuristic.phrase}' suggests "
            f"'{heuristic.command}'{args}. Use it unless the request clearly means something else.\n"
        )

    return CONVERSION_PROMPT.format(
        domain=domain,
        catalog=format_catalog(catalog),
        guidance=guidance.strip() or "- No extra rules.",
        user_input=user_input.strip(),
        hint=hint,
    )
