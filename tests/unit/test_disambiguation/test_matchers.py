import dataclasses

import pytest

from concierge.disambiguation import PendingDisambiguation, Resolved
from concierge.disambiguation.matchers import (
    build_pipeline,
    extract_choice,
    match_contextual,
    match_exact,
    match_fuzzy,
    match_phrase_patterns,
    match_substring,
    match_yes_no,
)


@pytest.fixture(scope="module")
def en(registry):
    return registry.get("en").disambiguation


@pytest.fixture(scope="module")
def pipeline(en):
    return build_pipeline(en)


class TestExact:

    def test_matches_either_candidate(self):
        assert match_exact("anna", "anna", "maria") == "anna"
        assert match_exact("maria!", "anna", "maria") == "maria"

    def test_partial_is_not_exact(self):
        assert match_exact("anna please", "anna", "maria") is None


class TestSubstring:

    def test_candidate_inside_reply(self):
        assert match_substring("maria, please", "anna petrova", "maria") == "maria"

    def test_reply_inside_candidate(self):
        assert match_substring("petrova", "anna petrova", "maria") == "anna petrova"

    def test_reply_must_be_whole_words_of_candidate(self):
        assert match_substring("new", "andrew", "maria") is None

    def test_short_reply_is_not_contained(self):
        assert match_substring("an", "anna", "maria") is None

    def test_longer_nested_candidate_wins(self):
        assert match_substring("anna maria please", "anna", "anna maria") == "anna maria"

    def test_both_unrelated_candidates_is_ambiguous(self):
        assert match_substring("anna or maria", "anna", "maria") is None


class TestPhrasePatterns:

    def test_use_phrase(self, en):
        assert match_phrase_patterns("not anna, use maria", "anna", "maria", vocab=en) == "maria"

    def test_book_under(self, en):
        assert match_phrase_patterns("please book it under petrova", "anna petrova", "maria",
                                     vocab=en) == "anna petrova"

    def test_unknown_name(self, en):
        assert match_phrase_patterns("use xavier", "anna", "maria", vocab=en) is None


class TestYesNo:

    @pytest.mark.parametrize("reply", ["yes", "yes please", "sure thing", "ok"])
    def test_affirmative_picks_requested(self, en, reply):
        assert match_yes_no(reply, "anna", "maria", vocab=en) == "maria"

    @pytest.mark.parametrize("reply", ["no", "nope", "no thanks", "no, thank you"])
    def test_negative_keeps_name_on_file(self, en, reply):
        assert match_yes_no(reply, "anna", "maria", vocab=en) == "anna"

    def test_long_reply_starting_with_yes_is_not_an_answer(self, en):
        assert match_yes_no("yes but actually i am not sure", "anna", "maria", vocab=en) is None

    def test_unrelated(self, en):
        assert match_yes_no("what do you mean", "anna", "maria", vocab=en) is None


class TestFuzzy:

    def test_one_typo(self):
        assert match_fuzzy("mariya", "anna petrova", "maria") == "maria"

    def test_typo_in_multiword_candidate(self):
        assert match_fuzzy("anna petrov", "anna petrova", "maria") == "anna petrova"

    def test_typo_inside_longer_reply(self):
        assert match_fuzzy("i think mraia", "anna petrova", "maria") == "maria"

    def test_too_far(self):
        assert match_fuzzy("marcus", "anna petrova", "maria") is None

    def test_short_candidates_are_skipped(self):
        assert match_fuzzy("rob", "bob", "maria") is None

    def test_tie_is_no_match(self):
        assert match_fuzzy("marx", "mark", "mary") is None


class TestContextual:

    @pytest.mark.parametrize("reply,expected", [
        ("the first one", "anna"),
        ("1", "anna"),
        ("option 2", "maria"),
        ("the second", "maria"),
        ("the new one", "maria"),
        ("keep the old name", "anna"),
    ])
    def test_references(self, en, reply, expected):
        assert match_contextual(reply, "anna", "maria", vocab=en) == expected

    def test_conflicting_references(self, en):
        assert match_contextual("the first or the second", "anna", "maria", vocab=en) is None

    def test_position_word_inside_another_word(self, en):
        assert match_contextual("renewal", "anna", "maria", vocab=en) is None


class TestExtractChoice:

    def test_stage_order(self, pipeline):
        assert [stage for stage, _ in pipeline] == [
            "exact", "substring", "phrase", "yes_no", "fuzzy", "contextual"]

    @pytest.mark.parametrize("reply,expected", [
        ("maria", ("maria", "exact")),
        ("petrova", ("anna petrova", "substring")),
        ("not anna petrova, use maria", ("maria", "phrase")),
        ("yes", ("maria", "yes_no")),
        ("mariya", ("maria", "fuzzy")),
        ("the second one", ("maria", "contextual")),
    ])
    def test_first_matching_stage_wins(self, pipeline, reply, expected):
        assert extract_choice(reply, "anna petrova", "maria", pipeline) == expected

    def test_no_stage_matches(self, pipeline):
        assert extract_choice("what do you mean", "anna petrova", "maria", pipeline) is None

    def test_empty_reply(self, pipeline):
        assert extract_choice("", "anna petrova", "maria", pipeline) is None


LOCALES = ["de", "en", "es", "fr", "nl", "ru", "sr"]


class TestExactMatchIgnoresVocabulary:

    def test_every_bundled_locale_is_covered(self, registry):
        assert list(registry.locales) == LOCALES

    @pytest.mark.parametrize("locale", LOCALES)
    def test_without_choice_patterns(self, registry, locale):
        vocab = dataclasses.replace(registry.get(locale).disambiguation, choice_patterns=())
        assert extract_choice("anna", "anna", "maria", build_pipeline(vocab)) == ("anna", "exact")

    @pytest.mark.parametrize("locale", LOCALES)
    def test_candidate_name_listed_as_yes_and_no(self, registry, locale):
        vocab = dataclasses.replace(
            registry.get(locale).disambiguation,
            affirmative=frozenset({"anna"}),
            negative=frozenset({"anna"}),
        )
        assert extract_choice("anna", "anna", "maria", build_pipeline(vocab)) == ("anna", "exact")

    @pytest.mark.parametrize("locale", LOCALES)
    def test_first_reply_resolves(self, machine, fixed_now, locale):
        pending = PendingDisambiguation.create("Anna", "Maria", {"language": locale}, fixed_now)

        resolution = machine.resolve(pending, "Anna", locale=locale)

        assert resolution == Resolved(chosen_value="Anna", stage="exact")
