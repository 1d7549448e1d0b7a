"""
Trigger phrases and per-domain language profiles.

Plugins hand a ``DomainLanguageProfile`` to the converter when they are
registered; the converter itself knows no domain vocabulary.
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

ArgExtractor = Callable[[str], List[str]]


@dataclass
class CommandPattern:
    """Ordered trigger phrases for one command, plus an optional extractor."""

    command: str
    patterns: List[str]
    extract_args: Optional[ArgExtractor] = None

    def __post_init__(self):
        self.patterns = [p.strip().lower() for p in self.patterns if p and p.strip()]


@dataclass
class HeuristicMatch:
    """Best Tier-1 match for an input."""

    command: str
    phrase: str
    score: float
    args: List[str] = field(default_factory=list)

    def confidence(self, discount: float) -> float:
        return min(1.0, max(0.0, self.score * discount))


RefineHook = Callable[[str, str, Optional[HeuristicMatch]], Optional[HeuristicMatch]]


@dataclass
class DomainLanguageProfile:
    """
    Everything the converter knows about one domain.

    Attributes:
        domain: Agent id the profile belongs to
        patterns: Trigger phrases per command, in priority order
        default_command: Read-only command used when nothing else resolves
        guidance: Free-text disambiguation rules included in the LLM prompt
        refine: Optional hook ``(normalized, original, match) -> match`` run
            after phrase matching
    """

    domain: str
    patterns: List[CommandPattern]
    default_command: str
    guidance: str = ""
    refine: Optional[RefineHook] = None

    def __post_init__(self):
        self.domain = self.domain.lower()

    @property
    def commands(self) -> List[str]:
        return [pattern.command for pattern in self.patterns]

    def pattern_for(self, command: str) -> Optional[CommandPattern]:
        for pattern in self.patterns:
            if pattern.command == command:
                return pattern
        return None

    def match(self, text: str) -> Optional[HeuristicMatch]:
        """
        Find the highest-scoring contained phrase.

        ``score = len(phrase) / len(normalized_text)``; the first phrase to
        reach the best score wins ties.
        """
        normalized = normalize_text(text)
        if not normalized:
            return None

        best: Optional[HeuristicMatch] = None
        for pattern in self.patterns:
            for phrase in pattern.patterns:
                if phrase not in normalized:
                    continue
                score = len(phrase) / len(normalized)
                if best is None or score > best.score:
                    best = HeuristicMatch(command=pattern.command, phrase=phrase, score=min(score, 1.0))

        if best is not None:
            pattern = self.pattern_for(best.command)
            if pattern and pattern.extract_args:
                best.args = list(pattern.extract_args(text.strip()))

        if self.refine is not None:
            best = self.refine(normalized, text.strip(), best)

        return best


def normalize_text(text: str) -> str:
    return (text or "").strip().lower()


def build_profile(
    domain: str,
    patterns: Dict[str, List[str]],
    default_command: str,
    guidance: str = "",
    extractors: Optional[Dict[str, ArgExtractor]] = None,
    refine: Optional[RefineHook] = None,
) -> DomainLanguageProfile:
    """Convenience constructor from a ``{command: [phrases]}`` mapping."""
    extractors = extractors or {}
    return DomainLanguageProfile(
        domain=domain,
        patterns=[
            CommandPattern(command=command, patterns=phrases, extract_args=extractors.get(command))
            for command, phrases in patterns.items()
        ],
        default_command=default_command,
        guidance=guidance,
        refine=refine,
    )
