from .identifier import IdentifierKind, IdentifierQuery, build_identifier_query, classify_identifier
from .mutability import (
    ReservationMutability,
    compute_mutability,
    evaluate_cancellation,
    evaluate_modification,
    local_slot,
    parse_reservation_timestamp,
)

__all__ = [
    "IdentifierKind",
    "IdentifierQuery",
    "build_identifier_query",
    "classify_identifier",
    "ReservationMutability",
    "compute_mutability",
    "evaluate_cancellation",
    "evaluate_modification",
    "local_slot",
    "parse_reservation_timestamp",
]
