"""
Conversation turn processing.

Ties the normalizer, the disambiguation state machine and the pending
store together for one guest message. Every public method returns a
tagged outcome dict (see concierge.results); nothing here raises for guest
input.
"""
import logging
from typing import Any, Dict, Mapping, Optional

from ..disambiguation.models import PendingDisambiguation
from ..disambiguation.sanitizer import sanitize_text
from ..disambiguation.state_machine import Clock, DisambiguationStateMachine, utc_now
from ..errors import PendingIntegrityError
from ..logging_config import log_function_call
from ..memory.store import PendingStore
from ..normalization.time_normalizer import TimeNormalizer
from ..reservations.identifier import build_identifier_query
from ..results import success_response, system_failure, validation_failure

logger = logging.getLogger(__name__)


class ConversationTurnProcessor:
    """
    Stateless per turn; all session state lives in the store.

    Example:
        >>> processor = ConversationTurnProcessor(normalizer, machine, InMemoryPendingStore())
        >>> processor.open_name_clarification("s1", "Anna", "Maria", {"guests": 2})
        >>> processor.process_message("s1", "the new one")
    """

    def __init__(
        self,
        normalizer: TimeNormalizer,
        state_machine: DisambiguationStateMachine,
        store: PendingStore,
        clock: Optional[Clock] = None,
    ):
        self.normalizer = normalizer
        self.state_machine = state_machine
        self.store = store
        self.clock = clock or utc_now

    def open_name_clarification(
        self,
        session_id: str,
        on_file_name: str,
        requested_name: str,
        payload: Optional[Mapping[str, Any]] = None,
        language: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Ask the guest which name to book under.

        The booking payload is parked with the question and handed back
        when the question resolves.

        Returns:
            success with the opening prompt, a validation failure EMPTY_NAME
            when no name was requested, or a system failure
            PENDING_STATE_REJECTED when the state could not be stored safely
        """
        if not sanitize_text(requested_name):
            return validation_failure("EMPTY_NAME", "Please tell me the name for the booking.")
        if sanitize_text(on_file_name) == sanitize_text(requested_name):
            # Same person, nothing to ask
            return success_response({"prompt": None, "chosen_value": requested_name.strip()})

        payload = dict(payload or {})
        if language:
            payload.setdefault("language", language)

        try:
            pending = PendingDisambiguation.create(
                candidate_a=on_file_name,
                candidate_b=requested_name,
                payload=payload,
                now=self.clock(),
            )
        except PendingIntegrityError as e:
            logger.error(
                "Pending disambiguation rejected",
                extra={"session_id": session_id, "reason": e.reason, "error_message": str(e)},
            )
            return system_failure(
                "PENDING_STATE_REJECTED",
                "Sorry, something went wrong while saving your booking details. "
                "Please start the reservation again.",
                reason=e.reason,
            )

        self.store.set(session_id, pending)
        prompt = self.state_machine.opening_prompt(pending, language)
        logger.info(
            "Name clarification opened",
            extra={"session_id": session_id, "max_attempts": pending.max_attempts},
        )
        return success_response({"prompt": prompt, "pending": pending})

    @log_function_call(level='INFO')
    def process_message(
        self,
        session_id: str,
        message: str,
        locale: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Handle one guest message.

        The message is always time-normalized. If a clarification is open
        for the session, the raw message is also treated as the answer:
        terminal resolutions clear the store, reprompts save the new state.

        Returns:
            success with {"normalization": ..., "disambiguation": ... | None}
        """
        normalization = self.normalizer.normalize(message, locale=locale, session_id=session_id)

        pending = self.store.get(session_id)
        if pending is None:
            return success_response({"normalization": normalization, "disambiguation": None})

        resolution = self.state_machine.resolve(pending, message, locale=locale, now=self.clock())
        disambiguation = resolution.to_dict()
        if resolution.is_terminal:
            self.store.clear(session_id)
            disambiguation["booking"] = {
                **pending.original_payload,
                "guest_name": resolution.chosen_value,
            }
        else:
            self.store.set(session_id, resolution.updated_pending)

        return success_response({"normalization": normalization, "disambiguation": disambiguation})

    def inspect_identifier(self, raw: Optional[str]) -> Dict[str, Any]:
        """Classify a guest-supplied reservation identifier."""
        return build_identifier_query(raw)
