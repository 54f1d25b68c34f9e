"""
Serialization-integrity checks for pending disambiguation state.

Pending state is written to the session store between turns. These checks
make sure what is written can be read back unchanged, and that nothing
outside the booking allow-list rides along in the payload.
"""
import json
import math
from typing import Any, Mapping, Set

from ..config.policy import ALLOWED_PAYLOAD_KEYS
from ..errors import PendingIntegrityError

_SCALARS = (str, int, bool, type(None))


def check_payload_integrity(payload: Any) -> None:
    """
    Validate a booking payload before it is stored with a pending question.

    Rules:
    - top-level keys are strings from the booking/context allow-list
    - values are JSON primitives, or lists and string-keyed dicts of them
    - no reference cycles
    - a JSON encode/decode cycle returns an equal value

    Raises:
        PendingIntegrityError: With reason unknown_key, non_primitive_value,
            reference_cycle, payload_not_mapping or lossy_round_trip
    """
    if not isinstance(payload, Mapping):
        raise PendingIntegrityError(
            "payload_not_mapping", f"Payload must be a mapping, got {type(payload).__name__}")

    unknown = sorted(str(k) for k in payload if not isinstance(k, str) or k not in ALLOWED_PAYLOAD_KEYS)
    if unknown:
        raise PendingIntegrityError(
            "unknown_key",
            f"Payload keys not allowed: {unknown}. Allowed: {sorted(ALLOWED_PAYLOAD_KEYS)}",
        )

    active = {id(payload)}
    for key, item in payload.items():
        _check_value(item, f"payload.{key}", active)

    try:
        restored = json.loads(json.dumps(payload, ensure_ascii=False))
    except (TypeError, ValueError) as e:
        raise PendingIntegrityError("lossy_round_trip", f"Payload is not JSON serializable: {e}") from e
    if restored != payload:
        raise PendingIntegrityError("lossy_round_trip", "Payload changed across a JSON round trip")


def _check_value(value: Any, path: str, active: Set[int]) -> None:
    if isinstance(value, float):
        if not math.isfinite(value):
            raise PendingIntegrityError("non_primitive_value", f"{path} is not a finite number")
        return
    if isinstance(value, _SCALARS):
        return

    if isinstance(value, (list, dict)):
        # `active` holds containers on the current path only; shared
        # (non-cyclic) references are fine.
        if id(value) in active:
            raise PendingIntegrityError("reference_cycle", f"{path} refers back to itself")
        active.add(id(value))
        if isinstance(value, list):
            for i, item in enumerate(value):
                _check_value(item, f"{path}[{i}]", active)
        else:
            for key, item in value.items():
                if not isinstance(key, str):
                    raise PendingIntegrityError(
                        "non_primitive_value", f"{path} has non-string key {key!r}")
                _check_value(item, f"{path}.{key}", active)
        active.discard(id(value))
        return

    raise PendingIntegrityError(
        "non_primitive_value", f"{path} has unsupported type {type(value).__name__}")


def verify_pending_round_trip(pending) -> None:
    """
    Encode a PendingDisambiguation to JSON, decode it and compare.

    Raises:
        PendingIntegrityError: With reason lossy_round_trip if the restored
            value differs or the state cannot be encoded
    """
    try:
        encoded = json.dumps(pending.to_dict(), ensure_ascii=False)
        restored = type(pending).from_dict(json.loads(encoded))
    except (TypeError, ValueError) as e:
        raise PendingIntegrityError("lossy_round_trip", f"Pending state is not serializable: {e}") from e
    if restored != pending:
        raise PendingIntegrityError("lossy_round_trip", "Pending state changed across a JSON round trip")
