"""
Name disambiguation: pending state, reply matching and the resolving state machine.
"""
from .integrity import check_payload_integrity, verify_pending_round_trip
from .matchers import build_pipeline, extract_choice
from .models import (
    DisambiguationKind,
    FallbackResolved,
    PendingDisambiguation,
    Reprompt,
    Resolved,
)
from .prompts import render_prompt
from .sanitizer import sanitize_reply
from .state_machine import DisambiguationStateMachine, Resolution

__all__ = [
    "check_payload_integrity",
    "verify_pending_round_trip",
    "build_pipeline",
    "extract_choice",
    "DisambiguationKind",
    "FallbackResolved",
    "PendingDisambiguation",
    "Reprompt",
    "Resolved",
    "render_prompt",
    "sanitize_reply",
    "DisambiguationStateMachine",
    "Resolution",
]
