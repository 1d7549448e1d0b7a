"""
Natural-language to command conversion.

Tier 1 matches trigger phrases from the domain's language profile. When it
is not confident enough and a language model is attached, Tier 2 asks the
model for a strict JSON answer. Any failure in Tier 2 falls back to the
Tier-1 match, and failing that to the domain's default command, so
``convert`` always produces a conversion and never raises.
"""

import threading
from typing import Dict, Iterable, List, Optional, Sequence

from ..config.models import NaturalLanguageConfig
from ..core.commands.types import CommandConversion, CommandUsage, ConversionSource
from ..core.llm.client import CompletionClient
from ..utils.error_handling import ConversionError, ProviderError, call_with_timeout
from ..utils.logging import get_logger, log_performance
from .patterns import DomainLanguageProfile, HeuristicMatch, normalize_text
from .profiles import get_builtin_profile
from .prompts import build_conversion_prompt
from .response_parser import parse_conversion

GENERIC_DEFAULT_COMMAND = "help"


class NaturalLanguageConverter:
    """
    Converts free text scoped to one domain into a ``CommandConversion``.

    Args:
        llm: Optional completion client; without one only Tier 1 runs
        config: Thresholds, timeout and fallback confidences
    """

    def __init__(self, llm: Optional[CompletionClient] = None, config: Optional[NaturalLanguageConfig] = None):
        self.llm = llm
        self.config = config or NaturalLanguageConfig()
        self.logger = get_logger(__name__)
        self._profiles: Dict[str, DomainLanguageProfile] = {}
        self._lock = threading.RLock()

    @property
    def llm_enabled(self) -> bool:
        return self.llm is not None and self.config.enable_llm

    def register_profile(self, profile: DomainLanguageProfile) -> None:
        """Install (or replace) the language profile of a domain."""
        with self._lock:
            self._profiles[profile.domain] = profile
        self.logger.debug(f"Registered language profile for {profile.domain} ({len(profile.patterns)} commands)")

    def unregister_profile(self, domain: str) -> bool:
        with self._lock:
            removed = self._profiles.pop((domain or "").lower(), None)
        return removed is not None

    def get_profile(self, domain: str) -> Optional[DomainLanguageProfile]:
        with self._lock:
            return self._profiles.get((domain or "").lower())

    def heuristic_match(self, domain: str, text: str) -> Optional[CommandConversion]:
        """Tier 1 only: the best trigger-phrase match as a conversion."""
        profile = self.get_profile(domain)
        if profile is None:
            return None

        match = profile.match(text)
        if match is None:
            return None

        return self._from_match(domain, match)

    def _from_match(self, domain: str, match: HeuristicMatch) -> CommandConversion:
        _, discount = self.config.thresholds_for(domain)
        return CommandConversion(
            command=match.command,
            args=list(match.args),
            confidence=match.confidence(discount),
            explanation=f"Matched keyword '{match.phrase}' for '{match.command}'",
            source=ConversionSource.HEURISTIC,
        )

    async def convert(
        self,
        domain: str,
        text: str,
        catalog: Optional[Sequence[CommandUsage]] = None,
    ) -> CommandConversion:
        """
        Resolve ``text`` to a command of ``domain``.

        Args:
            domain: Agent id the text is addressed to
            text: The user's free text
            catalog: The domain's registered commands, used for the prompt
                and to validate the model's choice

        Returns:
            A conversion; never raises
        """
        domain = (domain or "").lower()
        catalog = list(catalog or [])

        try:
            return await self._convert(domain, text or "", catalog)
        except Exception as e:
            self.logger.error(f"Natural language conversion failed for {domain}: {e}", exc_info=True)
            return self._default_conversion(
                domain, catalog, self.config.error_confidence,
                f"Conversion failed ({e}); using the default command",
            )

    async def _convert(self, domain: str, text: str, catalog: List[CommandUsage]) -> CommandConversion:
        if not normalize_text(text):
            return self._default_conversion(
                domain, catalog, self.config.fallback_confidence,
                "No request text given; using the default command",
            )

        self.logger.info(f"Converting natural language for @{domain}: \"{text}\"")
        accept_threshold, _ = self.config.thresholds_for(domain)

        profile = self.get_profile(domain)
        match = profile.match(text) if profile else None
        heuristic = self._from_match(domain, match) if match else None

        if heuristic is not None and heuristic.confidence > accept_threshold:
            self.logger.info(f"Heuristic match: {heuristic.command} (confidence {heuristic.confidence:.2f})")
            return heuristic

        if not self.llm_enabled:
            if heuristic is not None:
                return heuristic
            return self._default_conversion(
                domain, catalog, self.config.fallback_confidence,
                "No keyword matched and no language model is available; using the default command",
            )

        try:
            conversion = await self._llm_convert(domain, text, catalog, profile, match)
        except (ProviderError, ConversionError) as e:
            self.logger.warning(f"LLM conversion failed: {e.message}, using fallback")
            return self._after_llm_failure(domain, catalog, heuristic, e.message)
        except Exception as e:
            self.logger.error(f"LLM conversion raised {type(e).__name__}: {e}", exc_info=True)
            return self._after_llm_failure(domain, catalog, heuristic, f"{type(e).__name__}: {e}")

        self.logger.info(f"LLM match: {conversion.command} (confidence {conversion.confidence:.2f})")
        return conversion

    def _after_llm_failure(
        self,
        domain: str,
        catalog: List[CommandUsage],
        heuristic: Optional[CommandConversion],
        reason: str,
    ) -> CommandConversion:
        """A Tier-1 match if there is one, else the domain default."""
        if heuristic is not None:
            return heuristic
        return self._default_conversion(
            domain, catalog, self.config.fallback_confidence,
            f"Language model could not resolve the request ({reason}); using the default command",
        )

    async def _llm_convert(
        self,
        domain: str,
        text: str,
        catalog: List[CommandUsage],
        profile: Optional[DomainLanguageProfile],
        match: Optional[HeuristicMatch],
    ) -> CommandConversion:
        prompt = build_conversion_prompt(
            domain=domain,
            user_input=text,
            catalog=catalog,
            guidance=profile.guidance if profile else "",
            heuristic=match,
        )

        with log_performance(f"LLM conversion for @{domain}"):
            response = await call_with_timeout(
                self.llm.complete(prompt),
                "LLM conversion",
                self.config.llm_timeout_seconds,
            )

        if not isinstance(response, str):
            raise ConversionError(f"LLM returned {type(response).__name__}, expected text")

        return parse_conversion(response, self._known_commands(catalog, profile))

    @staticmethod
    def _known_commands(catalog: List[CommandUsage], profile: Optional[DomainLanguageProfile]) -> Optional[Iterable[str]]:
        if catalog:
            return [usage.command for usage in catalog]
        if profile is not None:
            return profile.commands
        return None

    def default_command_for(self, domain: str, catalog: Optional[Sequence[CommandUsage]] = None) -> str:
        """Domain default: its profile's, the bundled profile's, the first catalog entry, or ``help``."""
        profile = self.get_profile(domain) or get_builtin_profile(domain)
        if profile is not None:
            return profile.default_command
        if catalog:
            return catalog[0].command
        return GENERIC_DEFAULT_COMMAND

    def _default_conversion(
        self,
        domain: str,
        catalog: List[CommandUsage],
        confidence: float,
        explanation: str,
    ) -> CommandConversion:
        command = self.default_command_for(domain, catalog)
        self.logger.info(f"Falling back to default command for @{domain}: {command}")
        return CommandConversion(
            command=command,
            args=[],
            confidence=confidence,
            explanation=explanation,
            source=ConversionSource.FALLBACK,
        )
