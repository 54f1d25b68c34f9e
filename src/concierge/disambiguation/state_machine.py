"""
Disambiguation State Machine

Settles a pending question between two names over at most max_attempts
guest turns:

    open --(reply names a candidate)----------------> Resolved
    open --(no match, attempts left)----------------> Reprompt (explicit, then final)
    open --(no match, last attempt used)------------> FallbackResolved (requested name)

Every reply, including an empty one, either resolves the question or uses
up one attempt, so a question never stays open longer than max_attempts
turns.
"""
import logging
from datetime import datetime, timezone
from typing import Callable, Dict, Optional, Union

from ..config.locales import LocaleRegistry, LocaleTables
from ..config.policy import FALLBACK_TIER, PROMPT_TIERS
from ..logging_config import log_function_call
from .matchers import Pipeline, build_pipeline, extract_choice
from .models import FallbackResolved, PendingDisambiguation, Reprompt, Resolved
from .prompts import prompt_data, render_prompt
from .sanitizer import sanitize_reply, sanitize_text

logger = logging.getLogger(__name__)

Resolution = Union[Resolved, Reprompt, FallbackResolved]
Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class DisambiguationStateMachine:
    """
    Resolves name clarification replies against locale vocabulary.

    Holds only the read-only registry, one matcher pipeline per locale and
    the clock. Safe to share between sessions.
    """

    def __init__(self, registry: LocaleRegistry, clock: Optional[Clock] = None):
        self.registry = registry
        self.clock = clock or utc_now
        self._pipelines: Dict[str, Pipeline] = {
            locale: build_pipeline(registry.get(locale).disambiguation)
            for locale in registry.locales
        }

    def _tables(self, pending: PendingDisambiguation, locale: Optional[str]) -> LocaleTables:
        return self.registry.get(locale or pending.original_payload.get("language"))

    def opening_prompt(self, pending: PendingDisambiguation, locale: Optional[str] = None) -> str:
        """The first, polite question shown when the clarification opens."""
        tables = self._tables(pending, locale)
        return render_prompt(tables.prompts, PROMPT_TIERS[0], prompt_data(pending))

    @log_function_call()
    def resolve(
        self,
        pending: PendingDisambiguation,
        user_reply: Optional[str],
        locale: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Resolution:
        """
        Apply one guest reply to a pending question.

        Args:
            pending: Current question state
            user_reply: Raw guest text (sanitized here)
            locale: Locale for vocabulary and prompts; defaults to the
                payload's language, then the registry default
            now: Current instant; defaults to the injected clock

        Returns:
            Resolved, Reprompt or FallbackResolved
        """
        now = now or self.clock()
        tables = self._tables(pending, locale)
        reply = sanitize_reply(user_reply)

        if reply:
            candidate_a = sanitize_text(pending.candidate_a)
            candidate_b = sanitize_text(pending.candidate_b)
            hit = extract_choice(reply, candidate_a, candidate_b, self._pipelines[tables.locale])
            if hit is not None:
                choice, stage = hit
                chosen = pending.candidate_a if choice == candidate_a else pending.candidate_b
                logger.info(
                    "Disambiguation resolved",
                    extra={"stage": stage, "locale": tables.locale, "attempts": pending.attempts},
                )
                return Resolved(chosen_value=chosen, stage=stage)
            reason = "no_match"
        else:
            reason = "empty_reply"

        updated = pending.record_failed_attempt(now)
        data = prompt_data(pending)

        if updated.attempts >= updated.max_attempts:
            message = render_prompt(tables.prompts, FALLBACK_TIER, data)
            logger.warning(
                "Disambiguation attempts exhausted, using requested value",
                extra={
                    "locale": tables.locale,
                    "attempts": updated.attempts,
                    "reason": reason,
                },
            )
            return FallbackResolved(
                chosen_value=pending.candidate_b,
                updated_pending=updated,
                message=message,
            )

        tier = PROMPT_TIERS[min(updated.attempts, len(PROMPT_TIERS) - 1)]
        message = render_prompt(tables.prompts, tier, data)
        logger.info(
            "Disambiguation reprompt",
            extra={
                "locale": tables.locale,
                "tier": tier,
                "reason": reason,
                "attempts": updated.attempts,
                "max_attempts": updated.max_attempts,
            },
        )
        return Reprompt(message=message, updated_pending=updated, tier=tier, reason=reason)
