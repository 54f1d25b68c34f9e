"""
Locale Tables

Loads per-locale vocabulary (time words, spoken time idioms, disambiguation
phrasings, reprompt templates) from YAML config into immutable lookup
structures.

The registry is built once at startup and handed to the normalizer and the
disambiguation state machine by reference. Nothing in this module keeps
mutable module-level state.
"""
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Iterable, Mapping, Optional, Pattern, Tuple

import yaml

from ..errors import LocaleTableError
from .policy import CandidateRole, FALLBACK_TIER, POSITION_ROLES, PROMPT_TIERS

logger = logging.getLogger(__name__)

DEFAULT_TABLES_PATH = Path(__file__).resolve().parent / "data" / "locales.yaml"

# Sections of the "common" block merged into every locale.
_COMMON_TIME_FIELDS = ("oclock_words", "spoken_forms")

_HOUR_GROUP = r"(?P<hour>\d{1,2})(?::00)?"


@dataclass(frozen=True)
class SpokenForm:
    """A spoken time idiom such as "quarter to {hour}"."""
    pattern: Pattern[str]
    minute: int
    hour_offset: int
    confidence: float


@dataclass(frozen=True)
class TimeVocabulary:
    """
    Word lists used to score candidate time tokens.

    Each *_re attribute is a compiled alternation of the corresponding word
    list with word boundaries on both sides.
    """
    range_re: Pattern[str]
    unit_re: Pattern[str]
    quantity_re: Pattern[str]
    trailing_quantity_re: Pattern[str]
    time_indicator_re: Pattern[str]
    oclock_re: Pattern[str]
    meridiem_stopwords: FrozenSet[str]
    spoken_forms: Tuple[SpokenForm, ...]
    decimal_time: bool


@dataclass(frozen=True)
class DisambiguationVocabulary:
    """Phrasings used to pull a name choice out of a free-text reply."""
    choice_patterns: Tuple[Pattern[str], ...]
    affirmative: FrozenSet[str]
    negative: FrozenSet[str]
    positions: Mapping[int, Tuple[Pattern[str], ...]]
    roles: Mapping[CandidateRole, Tuple[Pattern[str], ...]]


@dataclass(frozen=True)
class LocaleTables:
    locale: str
    time: TimeVocabulary
    disambiguation: DisambiguationVocabulary
    prompts: Mapping[str, str]


class LocaleRegistry:
    """
    Read-only mapping of locale code -> LocaleTables.

    Unknown locales resolve to the default locale.
    """

    def __init__(self, tables: Mapping[str, LocaleTables], default_locale: str = "en"):
        if default_locale not in tables:
            raise LocaleTableError(
                f"Default locale '{default_locale}' has no tables. "
                f"Available locales: {sorted(tables)}"
            )
        self._tables = MappingProxyType(dict(tables))
        self.default_locale = default_locale

    @property
    def locales(self) -> Tuple[str, ...]:
        return tuple(sorted(self._tables))

    def supports(self, locale: Optional[str]) -> bool:
        return _locale_key(locale) in self._tables

    def get(self, locale: Optional[str]) -> LocaleTables:
        key = _locale_key(locale)
        if key in self._tables:
            return self._tables[key]
        if locale:
            logger.warning(
                "Locale not supported, using default tables",
                extra={"locale": locale, "fallback_locale": self.default_locale},
            )
        return self._tables[self.default_locale]


def _locale_key(locale: Optional[str]) -> str:
    # "de-AT" / "pt_BR" -> language part only
    if not locale:
        return ""
    return re.split(r"[-_]", locale.strip().lower(), maxsplit=1)[0]


def load_locale_registry(
    path: Optional[str] = None,
    default_locale: Optional[str] = None,
) -> LocaleRegistry:
    """
    Load locale tables from YAML and build the registry.

    Args:
        path: YAML file to read (defaults to the bundled config/data/locales.yaml,
            or LOCALE_TABLES_PATH when set)
        default_locale: Locale used for unsupported lookups (defaults to
            config.DEFAULT_LOCALE)

    Returns:
        LocaleRegistry with compiled tables for every locale in the file

    Raises:
        FileNotFoundError: If the YAML file does not exist
        LocaleTableError: If any locale table is malformed
    """
    from .config import config

    tables_path = Path(path or config.LOCALE_TABLES_PATH or DEFAULT_TABLES_PATH)
    if not tables_path.exists():
        raise FileNotFoundError(f"Locale tables not found at {tables_path}")

    with tables_path.open(encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    registry = build_locale_registry(raw, default_locale or config.DEFAULT_LOCALE)
    logger.info(
        "Locale tables loaded",
        extra={"path": str(tables_path), "locales": list(registry.locales)},
    )
    return registry


def build_locale_registry(raw: Mapping[str, Any], default_locale: str = "en") -> LocaleRegistry:
    """Compile a parsed YAML document into a LocaleRegistry."""
    if not isinstance(raw, Mapping):
        raise LocaleTableError("Locale tables must be a mapping of locale -> tables")

    common = raw.get("common") or {}
    common_time = common.get("time") or {}

    tables: Dict[str, LocaleTables] = {}
    for locale, section in raw.items():
        if locale == "common":
            continue
        if not isinstance(section, Mapping):
            raise LocaleTableError(f"[{locale}] table must be a mapping")
        tables[str(locale)] = LocaleTables(
            locale=str(locale),
            time=_build_time_vocabulary(locale, section.get("time") or {}, common_time),
            disambiguation=_build_disambiguation_vocabulary(
                locale, section.get("disambiguation") or {}),
            prompts=_build_prompts(locale, section.get("prompts") or {}),
        )

    return LocaleRegistry(tables, default_locale=default_locale)


# ----------------------------------------------------------------------
# Section builders
# ----------------------------------------------------------------------

def _words(locale: str, field: str, values: Any) -> Tuple[str, ...]:
    if values is None:
        return ()
    if not isinstance(values, list):
        raise LocaleTableError(f"[{locale}] '{field}' must be a list")
    words = []
    for value in values:
        if not isinstance(value, str) or not value.strip():
            raise LocaleTableError(
                f"[{locale}] '{field}' entries must be non-empty strings, got {value!r}"
                " (quote YAML booleans such as yes/no)"
            )
        words.append(value.strip().casefold())
    return tuple(words)


def phrase_pattern(phrases: Iterable[str]) -> Pattern[str]:
    """Alternation of literal phrases, bounded so 'to' never matches inside 'tonight'."""
    ordered = sorted(set(phrases), key=len, reverse=True)
    if not ordered:
        # Never matches
        return re.compile(r"(?!x)x")
    body = "|".join(re.escape(p).replace(r"\ ", r"\s+") for p in ordered)
    return re.compile(rf"(?<!\w)(?:{body})(?!\w)", re.IGNORECASE)


def _compile(locale: str, field: str, source: str) -> Pattern[str]:
    try:
        return re.compile(source, re.IGNORECASE)
    except re.error as e:
        raise LocaleTableError(f"[{locale}] invalid regex in '{field}': {source!r} ({e})") from e


def _oclock_pattern(words: Iterable[str]) -> Pattern[str]:
    """'{hour} <word> [minutes]', e.g. "8 o'clock", "19 Uhr 30", "20 heures"."""
    ordered = sorted(set(words), key=len, reverse=True)
    if not ordered:
        return re.compile(r"(?!x)x")
    body = "|".join(re.escape(w).replace("'", "['’]?").replace(r"\ ", r"\s+") for w in ordered)
    return re.compile(
        rf"(?<![\w:.,\-])(\d{{1,2}})\s*({body})(?:\s*(\d{{2}}))?(?![\w:])",
        re.IGNORECASE,
    )


def _build_spoken_forms(locale: str, entries: Any) -> Tuple[SpokenForm, ...]:
    if entries is None:
        return ()
    if not isinstance(entries, list):
        raise LocaleTableError(f"[{locale}] 'spoken_forms' must be a list")

    forms = []
    for entry in entries:
        try:
            template = entry["pattern"]
            minute = int(entry["minute"])
            hour_offset = int(entry.get("hour_offset", 0))
            confidence = float(entry["confidence"])
        except (KeyError, TypeError, ValueError) as e:
            raise LocaleTableError(f"[{locale}] malformed spoken form {entry!r}") from e

        if "{hour}" not in template:
            raise LocaleTableError(f"[{locale}] spoken form {template!r} has no {{hour}} slot")
        if not 0 <= minute <= 59 or not 0.0 <= confidence <= 1.0:
            raise LocaleTableError(f"[{locale}] spoken form {template!r} out of range")

        source = template.replace(" ", r"\s+").replace("{hour}", _HOUR_GROUP)
        forms.append(SpokenForm(
            pattern=_compile(locale, "spoken_forms", rf"(?<![\w:]){source}(?![\w:])"),
            minute=minute,
            hour_offset=hour_offset,
            confidence=confidence,
        ))
    return tuple(forms)


def _build_time_vocabulary(locale: str, section: Mapping[str, Any],
                           common: Mapping[str, Any]) -> TimeVocabulary:
    merged = dict(section)
    for field in _COMMON_TIME_FIELDS:
        merged[field] = list(common.get(field) or []) + list(section.get(field) or [])

    return TimeVocabulary(
        range_re=phrase_pattern(_words(locale, "range_words", merged.get("range_words"))),
        unit_re=phrase_pattern(_words(locale, "unit_words", merged.get("unit_words"))),
        quantity_re=phrase_pattern(_words(locale, "quantity_words", merged.get("quantity_words"))),
        trailing_quantity_re=phrase_pattern(
            _words(locale, "trailing_quantity_words", merged.get("trailing_quantity_words"))),
        time_indicator_re=phrase_pattern(
            _words(locale, "time_indicators", merged.get("time_indicators"))),
        oclock_re=_oclock_pattern(_words(locale, "oclock_words", merged.get("oclock_words"))),
        meridiem_stopwords=frozenset(
            _words(locale, "meridiem_stopwords", merged.get("meridiem_stopwords"))),
        spoken_forms=_build_spoken_forms(locale, merged.get("spoken_forms")),
        decimal_time=bool(merged.get("decimal_time", False)),
    )


def _build_disambiguation_vocabulary(locale: str, section: Mapping[str, Any]) -> DisambiguationVocabulary:
    patterns = []
    for source in section.get("choice_patterns") or []:
        compiled = _compile(locale, "choice_patterns", source)
        if "name" not in compiled.groupindex:
            raise LocaleTableError(
                f"[{locale}] choice pattern {source!r} must capture (?P<name>...)")
        patterns.append(compiled)

    positions: Dict[int, Tuple[Pattern[str], ...]] = {}
    for position, phrases in (section.get("positions") or {}).items():
        if position not in POSITION_ROLES:
            raise LocaleTableError(
                f"[{locale}] unknown position {position!r}; expected one of {sorted(POSITION_ROLES)}")
        positions[position] = (phrase_pattern(_words(locale, f"positions.{position}", phrases)),)

    roles: Dict[CandidateRole, Tuple[Pattern[str], ...]] = {}
    for role_name, phrases in (section.get("roles") or {}).items():
        try:
            role = CandidateRole(role_name)
        except ValueError as e:
            raise LocaleTableError(f"[{locale}] unknown candidate role {role_name!r}") from e
        roles[role] = (phrase_pattern(_words(locale, f"roles.{role_name}", phrases)),)

    return DisambiguationVocabulary(
        choice_patterns=tuple(patterns),
        affirmative=frozenset(_words(locale, "affirmative", section.get("affirmative"))),
        negative=frozenset(_words(locale, "negative", section.get("negative"))),
        positions=MappingProxyType(positions),
        roles=MappingProxyType(roles),
    )


def _build_prompts(locale: str, section: Mapping[str, Any]) -> Mapping[str, str]:
    prompts = {}
    for tier in PROMPT_TIERS + (FALLBACK_TIER,):
        template = section.get(tier)
        if not isinstance(template, str) or not template.strip():
            raise LocaleTableError(f"[{locale}] missing '{tier}' prompt template")
        prompts[tier] = template
    # The fallback message must say which name was chosen.
    if "{{requested}}" not in prompts[FALLBACK_TIER]:
        raise LocaleTableError(f"[{locale}] fallback prompt must mention {{{{requested}}}}")
    return MappingProxyType(prompts)
