import copy
import logging

import pytest
import yaml

from concierge.config import build_locale_registry, load_locale_registry
from concierge.config.locales import DEFAULT_TABLES_PATH
from concierge.config.policy import CandidateRole
from concierge.errors import LocaleTableError


@pytest.fixture(scope="module")
def raw_tables():
    with DEFAULT_TABLES_PATH.open(encoding="utf-8") as f:
        return yaml.safe_load(f)


def _broken(raw_tables, mutate):
    raw = copy.deepcopy(raw_tables)
    mutate(raw)
    with pytest.raises(LocaleTableError) as exc_info:
        build_locale_registry(raw)
    return str(exc_info.value)


class TestBundledTables:

    def test_all_locales_load(self, registry):
        assert registry.locales == ("de", "en", "es", "fr", "nl", "ru", "sr")
        assert registry.default_locale == "en"

    def test_common_forms_are_merged(self, registry):
        en_forms = registry.get("en").time.spoken_forms
        de_forms = registry.get("de").time.spoken_forms
        assert len(de_forms) == len(en_forms) + 4

    def test_yes_no_words_survive_yaml(self, registry):
        en = registry.get("en").disambiguation
        assert "yes" in en.affirmative
        assert "no" in en.negative

    def test_roles(self, registry):
        roles = registry.get("en").disambiguation.roles
        assert set(roles) == {CandidateRole.ON_FILE, CandidateRole.REQUESTED}

    def test_tables_are_read_only(self, registry):
        with pytest.raises(TypeError):
            registry.get("en").prompts["polite"] = "hi"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_locale_registry(str(tmp_path / "nope.yaml"))

    def test_custom_file(self, tmp_path, raw_tables):
        path = tmp_path / "locales.yaml"
        path.write_text(yaml.safe_dump({"common": raw_tables["common"], "en": raw_tables["en"]}),
                        encoding="utf-8")
        assert load_locale_registry(str(path)).locales == ("en",)


class TestRegistryLookup:

    def test_exact(self, registry):
        assert registry.get("fr").locale == "fr"

    @pytest.mark.parametrize("code", ["de-AT", "DE", "de_CH"])
    def test_language_part(self, registry, code):
        assert registry.get(code).locale == "de"
        assert registry.supports(code)

    def test_unsupported_falls_back_with_warning(self, registry, caplog):
        caplog.set_level(logging.WARNING, logger="concierge")
        assert registry.get("pt-BR").locale == "en"
        assert any(r.getMessage() == "Locale not supported, using default tables" for r in caplog.records)

    def test_none_uses_default(self, registry):
        assert registry.get(None).locale == "en"
        assert not registry.supports(None)

    def test_unknown_default(self, raw_tables):
        with pytest.raises(LocaleTableError, match="Default locale"):
            build_locale_registry(raw_tables, default_locale="pt")


class TestValidation:

    def test_not_a_mapping(self):
        with pytest.raises(LocaleTableError):
            build_locale_registry(["en"])

    def test_missing_prompt(self, raw_tables):
        message = _broken(raw_tables, lambda raw: raw["fr"]["prompts"].pop("final"))
        assert "[fr] missing 'final' prompt template" in message

    def test_fallback_must_name_requested(self, raw_tables):
        def mutate(raw):
            raw["en"]["prompts"]["fallback"] = "Booked."
        assert "fallback prompt" in _broken(raw_tables, mutate)

    def test_unquoted_yaml_boolean(self, raw_tables):
        def mutate(raw):
            raw["en"]["disambiguation"]["affirmative"].append(True)
        assert "quote YAML booleans" in _broken(raw_tables, mutate)

    def test_choice_pattern_needs_name_group(self, raw_tables):
        def mutate(raw):
            raw["en"]["disambiguation"]["choice_patterns"].append("use (\\w+)")
        assert "(?P<name>...)" in _broken(raw_tables, mutate)

    def test_invalid_regex(self, raw_tables):
        def mutate(raw):
            raw["en"]["disambiguation"]["choice_patterns"].append("use (?P<name>[a-")
        assert "invalid regex" in _broken(raw_tables, mutate)

    def test_unknown_position(self, raw_tables):
        def mutate(raw):
            raw["en"]["disambiguation"]["positions"][3] = ["third"]
        assert "unknown position" in _broken(raw_tables, mutate)

    def test_unknown_role(self, raw_tables):
        def mutate(raw):
            raw["en"]["disambiguation"]["roles"]["cousin"] = ["the cousin"]
        assert "unknown candidate role" in _broken(raw_tables, mutate)

    @pytest.mark.parametrize("entry,fragment", [
        ({"pattern": "half {hour}", "minute": 75, "confidence": 0.9}, "out of range"),
        ({"pattern": "half past", "minute": 30, "confidence": 0.9}, "no {hour} slot"),
        ({"pattern": "half {hour}", "confidence": 0.9}, "malformed spoken form"),
    ])
    def test_bad_spoken_form(self, raw_tables, entry, fragment):
        def mutate(raw):
            raw["de"]["time"]["spoken_forms"].append(entry)
        assert fragment in _broken(raw_tables, mutate)

    def test_word_list_must_be_a_list(self, raw_tables):
        def mutate(raw):
            raw["en"]["time"]["range_words"] = "between"
        assert "'range_words' must be a list" in _broken(raw_tables, mutate)
