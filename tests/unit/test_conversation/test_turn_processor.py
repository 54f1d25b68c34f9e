import pytest

from concierge.conversation import ConversationTurnProcessor
from concierge.memory import InMemoryPendingStore


SESSION = "session-1"


@pytest.fixture
def store():
    return InMemoryPendingStore()


@pytest.fixture
def processor(normalizer, machine, store, fixed_now):
    return ConversationTurnProcessor(normalizer, machine, store, clock=lambda: fixed_now)


@pytest.fixture
def opened(processor, booking_payload):
    return processor.open_name_clarification(SESSION, "Anna Petrova", "Maria", payload=booking_payload)


class TestOpenNameClarification:

    def test_opens_and_stores_question(self, opened, store):
        assert opened["success"] is True
        assert opened["data"]["prompt"].startswith("I see you've booked with us before as Anna Petrova")
        assert opened["data"]["pending"]["candidate_b"] == "Maria"
        assert store.get(SESSION) is not None

    def test_same_name_needs_no_question(self, processor, store):
        result = processor.open_name_clarification(SESSION, "Maria", " maria ")

        assert result["data"] == {"prompt": None, "chosen_value": "maria"}
        assert store.get(SESSION) is None

    @pytest.mark.parametrize("on_file,requested", [("", None), (None, "  "), ("Anna", "\u200b")])
    def test_blank_requested_name_is_a_validation_failure(self, processor, store, on_file, requested):
        result = processor.open_name_clarification(SESSION, on_file, requested)

        assert result["success"] is False
        assert result["error"]["category"] == "validation"
        assert result["error"]["code"] == "EMPTY_NAME"
        assert store.get(SESSION) is None

    def test_language_sets_prompt_locale(self, processor):
        result = processor.open_name_clarification(SESSION, "Anna", "Maria", payload={"guests": 2},
                                                   language="de")
        assert result["data"]["prompt"].startswith("Sie waren bereits als Anna")
        assert result["data"]["pending"]["original_payload"]["language"] == "de"

    def test_payload_language_is_kept(self, processor, booking_payload):
        result = processor.open_name_clarification(SESSION, "Anna", "Maria", payload=booking_payload,
                                                   language="de")
        assert result["data"]["pending"]["original_payload"]["language"] == "en"

    @pytest.mark.parametrize("payload,reason", [
        ({"guests": 2, "credit_card": "4111"}, "unknown_key"),
        ({"guests": float("nan")}, "non_primitive_value"),
    ])
    def test_rejected_state_is_a_system_failure(self, processor, store, payload, reason):
        result = processor.open_name_clarification(SESSION, "Anna", "Maria", payload=payload)

        assert result["success"] is False
        assert result["error"]["category"] == "system"
        assert result["error"]["code"] == "PENDING_STATE_REJECTED"
        assert result["error"]["details"] == {"reason": reason}
        assert store.get(SESSION) is None


class TestProcessMessage:

    def test_normalizes_without_open_question(self, processor):
        result = processor.process_message(SESSION, "table for 4 at 19-30")

        assert result["success"] is True
        assert result["data"]["normalization"]["normalized_message"] == "table for 4 at 19:30"
        assert result["data"]["disambiguation"] is None

    def test_answer_resolves_and_replays_booking(self, processor, opened, store, booking_payload):
        result = processor.process_message(SESSION, "the new one")
        disambiguation = result["data"]["disambiguation"]

        assert disambiguation["type"] == "resolved"
        assert disambiguation["chosen_value"] == "Maria"
        assert disambiguation["booking"] == {**booking_payload, "guest_name": "Maria"}
        assert store.get(SESSION) is None

    def test_unclear_answer_is_reprompted_and_saved(self, processor, opened, store):
        result = processor.process_message(SESSION, "what do you mean")

        assert result["data"]["disambiguation"]["type"] == "reprompt"
        assert result["data"]["disambiguation"]["tier"] == "explicit"
        assert store.get(SESSION).attempts == 1

    def test_fallback_clears_question(self, processor, opened, store):
        for _ in range(2):
            processor.process_message(SESSION, "what do you mean")
        result = processor.process_message(SESSION, "what do you mean")
        disambiguation = result["data"]["disambiguation"]

        assert disambiguation["type"] == "fallback"
        assert disambiguation["booking"]["guest_name"] == "Maria"
        assert store.get(SESSION) is None

    def test_message_is_normalized_and_answered(self, processor, opened):
        result = processor.process_message(SESSION, "Anna Petrova, at 8pm")

        assert result["data"]["normalization"]["normalized_message"] == "Anna Petrova, at 20:00"
        assert result["data"]["disambiguation"]["chosen_value"] == "Anna Petrova"

    def test_other_sessions_are_unaffected(self, processor, opened):
        result = processor.process_message("other-session", "Maria")
        assert result["data"]["disambiguation"] is None


def test_inspect_identifier(processor):
    assert processor.inspect_identifier("1234")["data"]["inferred_kind"] == "confirmation"
    assert processor.inspect_identifier("")["error"]["code"] == "EMPTY_IDENTIFIER"
