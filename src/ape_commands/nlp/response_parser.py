"""
Decoding of LLM replies into ``CommandConversion`` objects.

Recovery order: a fenced ```json block, then the first balanced ``{...}``
object in the text, then failure. The decoded object is validated against a
strict pydantic schema before it is trusted.
"""

import json
import re
from typing import Any, Iterable, List, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from ..core.commands.types import CommandConversion, ConversionAlternative, ConversionSource
from ..utils.error_handling import ConversionError

_FENCED_BLOCK = re.compile(r"```(?:json)?\s*(.*?)\s*```", re.DOTALL | re.IGNORECASE)


class AlternativePayload(BaseModel):
    command: str = Field(min_length=1)
    args: List[str] = Field(default_factory=list)
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)

    @field_validator('args', mode='before')
    @classmethod
    def coerce_args(cls, v):
        return _coerce_args(v)


class ConversionPayload(BaseModel):
    """Schema the LLM is asked to follow."""

    command: str = Field(min_length=1)
    args: List[str] = Field(default_factory=list)
    confidence: float = Field(ge=0.0, le=1.0)
    explanation: str = ""
    alternatives: List[AlternativePayload] = Field(default_factory=list)

    @field_validator('command', mode='before')
    @classmethod
    def normalize_command(cls, v):
        if isinstance(v, str):
            return v.strip().lstrip('@/').split(':')[-1].strip().lower()
        return v

    @field_validator('args', mode='before')
    @classmethod
    def coerce_args(cls, v):
        return _coerce_args(v)

    @field_validator('explanation', mode='before')
    @classmethod
    def coerce_explanation(cls, v):
        return "" if v is None else str(v)


def _coerce_args(value: Any) -> Any:
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value.strip() else []
    if isinstance(value, (list, tuple)):
        return [item if isinstance(item, str) else json.dumps(item, ensure_ascii=False) for item in value]
    return value


def first_balanced_object(text: str) -> Optional[str]:
    """Return the first ``{...}`` span whose braces balance, ignoring braces in strings."""
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False

        for index in range(start, len(text)):
            char = text[index]
            if in_string:
                if escaped:
                    escaped = False
                elif char == "\\":
                    escaped = True
                elif char == '"':
                    in_string = False
                continue

            if char == '"':
                in_string = True
            elif char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    return text[start:index + 1]

        start = text.find("{", start + 1)

    return None


def extract_json_object(text: str) -> Any:
    """
    Pull a JSON object out of free text.

    Raises:
        ConversionError: If no candidate decodes to a JSON object
    """
    if not text or not text.strip():
        raise ConversionError("Empty LLM response")

    candidates = [match.group(1) for match in _FENCED_BLOCK.finditer(text)]
    balanced = first_balanced_object(text)
    if balanced:
        candidates.append(balanced)

    for candidate in candidates:
        try:
            data = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(data, dict):
            return data

    raise ConversionError(
        "No JSON object found in LLM response",
        details={"response_preview": text[:200]}
    )


def parse_conversion(text: str, known_commands: Optional[Iterable[str]] = None) -> CommandConversion:
    """
    Decode and validate an LLM reply.

    Args:
        text: Raw LLM output
        known_commands: When given, the command (and each alternative) must be one of these

    Raises:
        ConversionError: On missing JSON, schema violations or unknown commands
    """
    data = extract_json_object(text)

    try:
        payload = ConversionPayload.model_validate(data)
    except ValidationError as e:
        raise ConversionError(
            f"LLM response does not match the conversion schema: {e.error_count()} error(s)",
            details={"errors": [err['msg'] for err in e.errors()]}
        ) from e

    known = {command.lower() for command in known_commands} if known_commands is not None else None
    if known is not None and payload.command not in known:
        raise ConversionError(
            f"LLM chose unknown command '{payload.command}'",
            details={"known_commands": sorted(known)}
        )

    alternatives = [
        ConversionAlternative(command=alt.command, args=alt.args, confidence=alt.confidence)
        for alt in payload.alternatives
        if alt.confidence < payload.confidence
        and (known is None or alt.command.lower() in known)
    ]
    alternatives.sort(key=lambda alt: alt.confidence, reverse=True)

    return CommandConversion(
        command=payload.command,
        args=payload.args,
        confidence=payload.confidence,
        explanation=payload.explanation,
        alternatives=alternatives,
        source=ConversionSource.LLM,
    )
