"""
Safety Rules for the X-Ray Chat Assistant

Questions asking for treatment decisions or outcome predictions are
refused before a reply is built, and every reply carries a disclaimer.
"""

from typing import Tuple


class SafetyFilter:
    """
    Pre-question validation and post-reply disclaimer injection.

    Replies are built from the knowledge base, so the filter does not
    rewrite content; it only refuses unsafe questions and guarantees the
    disclaimer.
    """

    REQUIRED_DISCLAIMERS = [
        "AI prediction requires medical validation",
        "requires professional validation",
        "consult a medical professional",
    ]

    DEFAULT_DISCLAIMER = "AI prediction requires medical validation."

    TREATMENT_KEYWORDS = [
        'should i take', 'what treatment', 'how to treat', 'how do i treat', 'cure',
        'which medication', 'what medication', 'dosage', 'prescribe',
    ]

    PROGNOSIS_KEYWORDS = [
        'will i', 'how long will', 'survival', 'life expectancy', 'prognosis', 'am i going to',
    ]

    def check_disclaimer_present(self, response: str) -> bool:
        """
        Check if response contains a required disclaimer.

        Args:
            response: Reply text

        Returns:
            True if at least ONE required disclaimer present
        """
        response_lower = response.lower()

        for disclaimer in self.REQUIRED_DISCLAIMERS:
            if disclaimer.lower() in response_lower:
                return True

        return False

    def inject_disclaimer(self, response: str) -> str:
        """Append the default disclaimer if none is present."""
        if self.check_disclaimer_present(response):
            return response

        return response.rstrip() + " " + self.DEFAULT_DISCLAIMER

    def validate_question(self, question: str) -> Tuple[bool, str]:
        """
        Pre-validate a user question.

        Args:
            question: User's input question

        Returns:
            (is_valid, reason):
                - is_valid: False if question should be blocked
                - reason: Explanation for rejection
        """
        question_lower = question.lower()

        for keyword in self.TREATMENT_KEYWORDS:
            if keyword in question_lower:
                return (False, "I cannot provide treatment decisions or medical advice. Please consult a medical professional.")

        for keyword in self.PROGNOSIS_KEYWORDS:
            if keyword in question_lower:
                return (False, "I cannot predict outcomes. Please consult a medical professional about your condition.")

        return (True, "")


__all__ = ['SafetyFilter']
