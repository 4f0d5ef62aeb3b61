import pytest

from assistant.chat.safety_rules import SafetyFilter


@pytest.fixture
def safety():
    return SafetyFilter()


@pytest.mark.parametrize("question", [
    "What treatment do I need?",
    "How to treat this?",
    "Which medication should I use?",
    "Is there a cure?",
    "What is my prognosis?",
    "What is the life expectancy?",
])
def test_blocks_unsafe_questions(safety, question):
    is_valid, reason = safety.validate_question(question)

    assert not is_valid
    assert reason


@pytest.mark.parametrize("question", [
    "What did the model detect?",
    "How confident are you?",
    "What are the recommendations?",
])
def test_allows_questions_about_the_report(safety, question):
    assert safety.validate_question(question) == (True, "")


def test_inject_disclaimer_appends_once(safety):
    response = safety.inject_disclaimer("Classified as Normal.")

    assert response == "Classified as Normal. AI prediction requires medical validation."
    assert safety.inject_disclaimer(response) == response


def test_existing_disclaimer_is_kept(safety):
    response = "Please consult a medical professional."

    assert safety.inject_disclaimer(response) == response
