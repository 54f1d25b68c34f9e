"""
Choice extraction for name clarification replies.

A reply is run through an ordered pipeline of matchers. Every matcher has
the same shape, (reply, candidate_a, candidate_b) -> Optional[str], and
returns the candidate it is sure about or None. Locale vocabulary is bound
in with functools.partial, so a pipeline is a plain tuple of functions.

All inputs are expected to be sanitized already (see sanitizer.py).
candidate_a is the value on file, candidate_b the requested one.

    "anna"                  -> exact
    "anna please"           -> substring
    "not anna, use maria"   -> phrase
    "yes"                   -> yes/no (requested)
    "anya"                  -> fuzzy ("anna", distance 1)
    "the second one"        -> contextual (position 2 -> requested)
"""
import logging
import re
from functools import partial
from typing import Callable, List, Optional, Tuple

from rapidfuzz.distance import Levenshtein

from ..config import policy
from ..config.locales import DisambiguationVocabulary
from ..config.policy import CandidateRole, POSITION_ROLES

logger = logging.getLogger(__name__)

Matcher = Callable[[str, str, str], Optional[str]]
Pipeline = Tuple[Tuple[str, Matcher], ...]

_TRIM = " .,!?"
# Replies this long or shorter may start with yes/no and still count as one
MAX_YES_NO_WORDS = 3


def _contains_word(text: str, phrase: str) -> bool:
    if not phrase:
        return False
    return re.search(rf"(?<!\w){re.escape(phrase)}(?!\w)", text) is not None


def _pick(hits: List[str]) -> Optional[str]:
    unique = list(dict.fromkeys(hits))
    return unique[0] if len(unique) == 1 else None


# ----------------------------------------------------------------------
# Stages
# ----------------------------------------------------------------------

def match_exact(reply: str, candidate_a: str, candidate_b: str) -> Optional[str]:
    core = reply.strip(_TRIM)
    if core == candidate_a:
        return candidate_a
    if core == candidate_b:
        return candidate_b
    return None


def match_substring(reply: str, candidate_a: str, candidate_b: str) -> Optional[str]:
    """
    Candidate inside the reply ("anna, please"), or reply inside a candidate
    as whole words ("maria" for "anna maria", at least
    MIN_CONTAINED_REPLY_LENGTH chars).

    When both candidates appear and one contains the other ("anna" vs
    "anna maria"), the longer one wins. Anything else with two hits is
    ambiguous.
    """
    core = reply.strip(_TRIM)
    if not core:
        return None

    in_reply = [c for c in (candidate_a, candidate_b) if _contains_word(core, c)]
    if len(in_reply) == 2:
        shorter, longer = sorted(in_reply, key=len)
        if len(shorter) < len(longer) and shorter in longer:
            return longer
        return None
    if len(in_reply) == 1:
        return in_reply[0]

    if len(core) < policy.MIN_CONTAINED_REPLY_LENGTH:
        return None
    return _pick([c for c in (candidate_a, candidate_b) if _contains_word(c, core)])


def match_phrase_patterns(
    reply: str,
    candidate_a: str,
    candidate_b: str,
    vocab: DisambiguationVocabulary,
) -> Optional[str]:
    """Locale phrasings such as "book it under X" or "ich heiße X"."""
    for pattern in vocab.choice_patterns:
        match = pattern.search(reply)
        if not match:
            continue
        name = match.group("name").strip(_TRIM)
        if not name:
            continue
        hits = [
            c for c in (candidate_a, candidate_b)
            if name == c or _contains_word(name, c) or _contains_word(c, name)
        ]
        choice = _pick(hits)
        if choice is not None:
            return choice
    return None


def match_yes_no(
    reply: str,
    candidate_a: str,
    candidate_b: str,
    vocab: DisambiguationVocabulary,
) -> Optional[str]:
    """
    Answer to the opening question "use the new name?".

    Affirmative picks the requested name, negative keeps the one on file.
    """
    core = reply.strip(_TRIM)
    words = core.split()
    if not words:
        return None

    def answers(phrases) -> bool:
        if core in phrases:
            return True
        return len(words) <= MAX_YES_NO_WORDS and words[0].strip(_TRIM) in phrases

    is_yes = answers(vocab.affirmative)
    is_no = answers(vocab.negative)
    if is_yes == is_no:
        return None
    return candidate_b if is_yes else candidate_a


def match_fuzzy(reply: str, candidate_a: str, candidate_b: str) -> Optional[str]:
    """
    Typo tolerance: Levenshtein distance <= FUZZY_MAX_DISTANCE against the
    whole reply or any run of words as long as the candidate. Short
    candidates ("bob") are skipped, and ties are no match.
    """
    core = reply.strip(_TRIM)
    if not core:
        return None

    best = {}
    for candidate in (candidate_a, candidate_b):
        if len(candidate) < policy.FUZZY_MIN_CANDIDATE_LENGTH:
            continue
        best[candidate] = min(
            Levenshtein.distance(window, candidate, score_cutoff=policy.FUZZY_MAX_DISTANCE)
            for window in _windows(core, len(candidate.split()))
        )

    close = {c: d for c, d in best.items() if d <= policy.FUZZY_MAX_DISTANCE}
    if not close:
        return None
    ranked = sorted(close.items(), key=lambda item: item[1])
    if len(ranked) > 1 and ranked[0][1] == ranked[1][1]:
        return None
    return ranked[0][0]


def _windows(text: str, size: int) -> List[str]:
    words = [w.strip(_TRIM) for w in text.split()]
    words = [w for w in words if w]
    windows = [text]
    if size >= 1 and len(words) > size:
        windows.extend(" ".join(words[i:i + size]) for i in range(len(words) - size + 1))
    return windows


def match_contextual(
    reply: str,
    candidate_a: str,
    candidate_b: str,
    vocab: DisambiguationVocabulary,
) -> Optional[str]:
    """Position ("the first one", "2") or role ("the new one", "old") references."""
    roles = set()
    for position, patterns in vocab.positions.items():
        if any(p.search(reply) for p in patterns):
            roles.add(POSITION_ROLES[position])
    for role, patterns in vocab.roles.items():
        if any(p.search(reply) for p in patterns):
            roles.add(role)

    if len(roles) != 1:
        return None
    role = roles.pop()
    return candidate_a if role is CandidateRole.ON_FILE else candidate_b


# ----------------------------------------------------------------------
# Pipeline
# ----------------------------------------------------------------------

def build_pipeline(vocab: DisambiguationVocabulary) -> Pipeline:
    """Matchers in the order they are tried, with locale vocabulary bound."""
    return (
        ("exact", match_exact),
        ("substring", match_substring),
        ("phrase", partial(match_phrase_patterns, vocab=vocab)),
        ("yes_no", partial(match_yes_no, vocab=vocab)),
        ("fuzzy", match_fuzzy),
        ("contextual", partial(match_contextual, vocab=vocab)),
    )


def extract_choice(
    reply: str,
    candidate_a: str,
    candidate_b: str,
    pipeline: Pipeline,
) -> Optional[Tuple[str, str]]:
    """
    Run the pipeline and stop at the first matcher that picks a candidate.

    Returns:
        (chosen candidate, stage name), or None when no stage matched
    """
    if not reply:
        return None
    for stage, matcher in pipeline:
        choice = matcher(reply, candidate_a, candidate_b)
        if choice is not None:
            logger.debug("Disambiguation stage matched", extra={"stage": stage})
            return choice, stage
    return None
