"""Unit tests for ResponseGenerator and template selection."""
import pytest

from config.templates import get_templates
from services.order_reconciliation import ReconciliationResult
from services.response_generator import ResponseGenerator, limit_sentences
from services.session_manager import UserSession

ORDER = "s052602010000079447000"
ENGLISH_APOLOGY = get_templates().get("english", "apology")


@pytest.fixture
def generator():
    return ResponseGenerator()


@pytest.fixture
def session():
    return UserSession(user_id="user-1", is_first_message=False)


def found(payment_status="success", ledger="deposits"):
    return ReconciliationResult(
        order_number=ORDER,
        ledger=ledger,
        record={
            "order_number": ORDER,
            "delivery_type": "instant",
            "amount": 500.0,
            "payment_status": payment_status,
            "import_date": "2026-01-05",
        },
    )


class TestTemplatePath:

    def test_greeting_is_localized(self, generator):
        assert generator.greeting("english").startswith("Hello!")
        assert generator.greeting("hindi").startswith("नमस्ते")

    def test_sub_intent_template(self, generator, session):
        response = generator.generate("my deposit failed", "deposit", session, "english")
        assert "pending with our bank representative" in response

    def test_category_general_fallback(self, generator, session):
        response = generator.generate("deposit", "deposit", session, "english")
        assert response.startswith("I'm here to help you with your deposit!")

    def test_missing_sub_intent_in_language_uses_category_general(self, generator, session):
        expected = get_templates().get("hindi", "account")
        assert generator.generate("मेरा खाता locked", "account", session, "hindi") == expected

    def test_unconfigured_category_uses_default_general(self):
        assert get_templates().get("hindi", "vip").startswith("I'm so happy you reached out!")

    @pytest.mark.parametrize("text,language,opening", [
        ("मुझे जुए की लत है", "hindi", "बताने के लिए धन्यवाद"),
        ("నాకు వ్యసనం ఉంది", "telugu", "చెప్పినందుకు ధన్యవాదాలు"),
    ])
    def test_responsible_gaming_is_localized(self, generator, session, text, language, opening):
        assert generator.generate(text, "responsible_gaming", session, language).startswith(opening)

    def test_unconfigured_language_uses_default_table(self, generator, session):
        response = generator.generate("deposit", "deposit", session, "tamil")
        assert response.startswith("I'm here to help you with your deposit!")

    def test_thanks_sub_intent(self, generator, session):
        response = generator.generate("thanks a lot", "general", session, "english")
        assert response.startswith("You're very welcome!")

    def test_template_is_capped_to_three_sentences(self, generator, session):
        response = generator.generate("how long for my deposit", "deposit", session, "english")
        assert response.startswith("Unfortunately")
        assert "Thank you for your patience" not in response

    def test_angry_message_gets_apology(self, generator, session):
        response = generator.generate("I am so frustrated, my deposit failed", "deposit", session, "english")
        assert response.startswith(ENGLISH_APOLOGY)
        assert "pending with our bank representative" in response

    def test_escalation_text(self, generator):
        assert "support team" in generator.escalation("human please", "english")
        assert generator.escalation("this is terrible", "english").startswith(ENGLISH_APOLOGY)


class TestReconciliationPath:

    def test_success_report(self, generator, session):
        response = generator.generate("order " + ORDER, "general", session, "english", found())
        assert "Successful" in response
        assert ORDER in response
        assert "₹500.0" in response
        assert "instant" in response
        assert "2026-01-05" in response

    @pytest.mark.parametrize("status", [None, "", "Completed", "PAID", "credited"])
    def test_success_statuses(self, status):
        assert found(status).status == "success"

    def test_pending_report(self, generator, session):
        response = generator.generate(ORDER, "general", session, "english", found("processing"))
        assert "Pending" in response
        assert "processing" in response

    def test_localized_report(self, generator, session):
        assert "सफल" in generator.generate(ORDER, "general", session, "hindi", found())

    def test_found_report_never_gets_apology(self, generator, session):
        response = generator.generate("terrible " + ORDER, "general", session, "english", found())
        assert not response.startswith(ENGLISH_APOLOGY)

    def test_not_found(self, generator, session):
        result = ReconciliationResult(order_number=ORDER)
        response = generator.generate("order " + ORDER, "deposit", session, "english", result)
        assert "couldn't find order" in response
        assert ORDER in response
        assert result.status == "not_found"

    def test_missing_fields_render_as_dash(self, generator):
        result = ReconciliationResult(order_number=ORDER, ledger="withdrawals", record={"payment_status": None})
        response = generator.reconciliation(result, "english")
        assert "Amount: ₹-" in response
        assert "(withdrawal)" in response


def test_limit_sentences():
    assert limit_sentences("One. Two! Three? Four.", 3) == "One. Two! Three?"
    assert limit_sentences("Only one sentence", 3) == "Only one sentence"
    assert limit_sentences("एक। दो। तीन। चार।", 2) == "एक। दो।"
