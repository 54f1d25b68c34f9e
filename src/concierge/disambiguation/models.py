"""
Disambiguation Models

Pending question state and the three ways a reply can resolve it.
All values are immutable; every transition returns a new object.
"""
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from ..config.policy import CandidateRole, MAX_DISAMBIGUATION_ATTEMPTS, PROMPT_TIERS
from ..errors import PendingIntegrityError
from .integrity import check_payload_integrity, verify_pending_round_trip


class DisambiguationKind(str, Enum):
    NAME_CLARIFICATION = "name_clarification"


def _require_aware(name: str, value: Optional[datetime], required: bool = True) -> None:
    if value is None and not required:
        return
    if not isinstance(value, datetime) or value.tzinfo is None:
        raise PendingIntegrityError(
            "naive_timestamp", f"{name} must be a timezone-aware datetime, got {value!r}")


def _parse_timestamp(name: str, value: Any) -> Optional[datetime]:
    if value is None:
        return None
    try:
        return datetime.fromisoformat(value)
    except (TypeError, ValueError) as e:
        raise PendingIntegrityError("malformed_state", f"Invalid {name}: {value!r}") from e


@dataclass(frozen=True)
class PendingDisambiguation:
    """
    An open question between two candidate values.

    For name clarification candidate_a is the name on file and candidate_b
    the name the guest just asked for. original_payload is the booking the
    question interrupted; it is replayed once the question is settled.

    Construction validates every field, so an instance that exists can
    always be persisted and restored.
    """
    kind: DisambiguationKind
    candidate_a: str
    candidate_b: str
    original_payload: Dict[str, Any]
    created_at: datetime
    attempts: int = 0
    max_attempts: int = MAX_DISAMBIGUATION_ATTEMPTS
    last_attempt_at: Optional[datetime] = None

    def __post_init__(self):
        if not isinstance(self.kind, DisambiguationKind):
            raise PendingIntegrityError("malformed_state", f"Unknown disambiguation kind {self.kind!r}")
        for name in ("candidate_a", "candidate_b"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value.strip():
                raise PendingIntegrityError("empty_candidate", f"{name} must be a non-empty string")
        # One reprompt tier per failed attempt, so the ceiling is bounded by the tiers
        if not 1 <= self.max_attempts <= len(PROMPT_TIERS):
            raise PendingIntegrityError(
                "attempts_out_of_range",
                f"max_attempts={self.max_attempts} outside 1..{len(PROMPT_TIERS)}",
            )
        if not 0 <= self.attempts <= self.max_attempts:
            raise PendingIntegrityError(
                "attempts_out_of_range",
                f"attempts={self.attempts} outside 0..{self.max_attempts}",
            )
        _require_aware("created_at", self.created_at)
        _require_aware("last_attempt_at", self.last_attempt_at, required=False)
        check_payload_integrity(self.original_payload)

    @classmethod
    def create(
        cls,
        candidate_a: str,
        candidate_b: str,
        payload: Mapping[str, Any],
        now: datetime,
        kind: DisambiguationKind = DisambiguationKind.NAME_CLARIFICATION,
        max_attempts: int = MAX_DISAMBIGUATION_ATTEMPTS,
    ) -> "PendingDisambiguation":
        """
        Open a new question.

        Raises:
            PendingIntegrityError: If the payload or the whole state would not
                survive a save/load cycle unchanged
        """
        pending = cls(
            kind=kind,
            candidate_a=(candidate_a or "").strip(),
            candidate_b=(candidate_b or "").strip(),
            original_payload=dict(payload or {}),
            created_at=now,
            max_attempts=max_attempts,
        )
        verify_pending_round_trip(pending)
        return pending

    def candidate_for(self, role: CandidateRole) -> str:
        if role is CandidateRole.ON_FILE:
            return self.candidate_a
        return self.candidate_b

    @property
    def remaining_attempts(self) -> int:
        return self.max_attempts - self.attempts

    def record_failed_attempt(self, now: datetime) -> "PendingDisambiguation":
        return replace(
            self,
            attempts=min(self.attempts + 1, self.max_attempts),
            last_attempt_at=now,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "candidate_a": self.candidate_a,
            "candidate_b": self.candidate_b,
            "original_payload": self.original_payload,
            "attempts": self.attempts,
            "max_attempts": self.max_attempts,
            "created_at": self.created_at.isoformat(),
            "last_attempt_at": self.last_attempt_at.isoformat() if self.last_attempt_at else None,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PendingDisambiguation":
        try:
            return cls(
                kind=DisambiguationKind(data["kind"]),
                candidate_a=data["candidate_a"],
                candidate_b=data["candidate_b"],
                original_payload=data["original_payload"],
                attempts=data["attempts"],
                max_attempts=data["max_attempts"],
                created_at=_parse_timestamp("created_at", data["created_at"]),
                last_attempt_at=_parse_timestamp("last_attempt_at", data.get("last_attempt_at")),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise PendingIntegrityError("malformed_state", f"Cannot restore pending state: {e}") from e


# ----------------------------------------------------------------------
# Resolutions
# ----------------------------------------------------------------------

@dataclass(frozen=True)
class Resolved:
    """The reply named one of the candidates."""
    chosen_value: str
    stage: str

    is_terminal = True

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "resolved", "chosen_value": self.chosen_value, "stage": self.stage}


@dataclass(frozen=True)
class Reprompt:
    """The reply was not understood; ask again with `message`."""
    message: str
    updated_pending: PendingDisambiguation
    tier: str
    reason: str = "no_match"

    is_terminal = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": "reprompt",
            "message": self.message,
            "tier": self.tier,
            "reason": self.reason,
            "attempts": self.updated_pending.attempts,
            "max_attempts": self.updated_pending.max_attempts,
        }


@dataclass(frozen=True)
class FallbackResolved:
    """Attempts ran out; the requested value was chosen and `message` says so."""
    chosen_value: str
    updated_pending: PendingDisambiguation
    message: str

    is_terminal = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": "fallback",
            "chosen_value": self.chosen_value,
            "message": self.message,
            "attempts": self.updated_pending.attempts,
        }
