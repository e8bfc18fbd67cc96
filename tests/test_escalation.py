"""Unit tests for EscalationPolicy."""
import pytest

from services.escalation import EscalationPolicy
from services.session_manager import UserSession


@pytest.fixture
def policy():
    return EscalationPolicy()


@pytest.fixture
def session():
    return UserSession(user_id="user-1", is_first_message=False)


@pytest.mark.parametrize("message,reason", [
    ("I want to talk to a human", "human_request"),
    ("let me speak to your manager", "human_request"),
    ("I will contact my lawyer", "legal_threat"),
    ("this is a scam", "payment_dispute"),
    ("I'll file a chargeback", "payment_dispute"),
    ("why did you ban me", "account_suspension"),
    ("my account got suspended", "account_suspension"),
])
def test_keyword_triggers(policy, session, message, reason):
    assert policy.reason(message, "general", session, "english") == reason
    assert policy.should_escalate(message, "general", session, "english")


def test_keywords_need_whole_words(policy, session):
    # "bank" contains "ban", "issue" contains "sue"
    assert policy.reason("bank transfer issue", "deposit", session, "english") is None


def test_attempt_limit(policy, session):
    session.attempt_count = 2
    assert not policy.should_escalate("hello", "general", session, "english")
    session.attempt_count = 3
    assert policy.reason("hello", "general", session, "english") == "attempt_limit"


def test_custom_attempt_limit(session):
    session.attempt_count = 1
    assert EscalationPolicy(attempt_limit=1).reason("hi", "general", session, "english") == "attempt_limit"


def test_system_failure_only_for_technical(policy, session):
    assert policy.reason("the server is down", "technical", session, "english") == "system_failure"
    assert policy.reason("the server is down", "general", session, "english") is None


def test_hindi_keywords(policy, session):
    assert policy.reason("मुझे वकील से बात करनी है", "general", session, "hindi") == "legal_threat"


def test_unknown_language_uses_default_keywords(policy, session):
    assert policy.reason("I need a human", "general", session, "tamil") == "human_request"


def test_policy_does_not_mutate_session(policy, session):
    session.attempt_count = 3
    policy.reason("hello", "general", session, "english")
    assert session.attempt_count == 3
