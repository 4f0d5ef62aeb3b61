"""
Chat Engine for X-Ray Analysis

Template-based assistant that answers questions about the current report.
Every answer is built from the report fields and the knowledge base; no
free-text generation happens. All replies pass through SafetyFilter.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, List, Optional

from assistant.formatting import format_percent, format_possibilities, format_report_summary
from diagnosis.knowledge_base import Report, Severity

from .safety_rules import SafetyFilter

logger = logging.getLogger(__name__)


WELCOME_MESSAGE = "Welcome to X-Ray AI! How can I assist you?"


class Sender(Enum):
    USER = 'user'
    ASSISTANT = 'assistant'


@dataclass(frozen=True)
class ChatMessage:
    id: str
    content: str
    created: datetime
    sender: Sender


class ChatEngine:
    """
    Conversation about the most recent analysis.

    Intent detection routes short questions to direct answers
    (diagnosis, confidence, severity, recommendations, alternatives,
    description); anything else gets the general summary.
    """

    def __init__(
        self,
        welcome_message: str = WELCOME_MESSAGE,
        clock: Optional[Callable[[], datetime]] = None,
        max_history_length: int = 100,
    ):
        self.welcome_message = welcome_message
        self.clock = clock or (lambda: datetime.now().astimezone())
        self.max_history_length = max_history_length
        self.safety_filter = SafetyFilter()
        self.report: Optional[Report] = None
        self._messages: List[ChatMessage] = []

        self.reset_conversation()

    @property
    def messages(self) -> List[ChatMessage]:
        return list(self._messages)

    def _append(self, content: str, sender: Sender) -> ChatMessage:
        message = ChatMessage(id=str(uuid.uuid4()), content=content, created=self.clock(), sender=sender)
        self._messages.append(message)

        if len(self._messages) > self.max_history_length:
            self._messages = self._messages[-self.max_history_length:]

        return message

    def set_report(self, report: Optional[Report]) -> Optional[ChatMessage]:
        """
        Attach a new analysis to the conversation.

        Posts the report summary as an assistant message.
        """
        self.report = report
        if report is None:
            return None
        return self._append(self.safety_filter.inject_disclaimer(format_report_summary(report)), Sender.ASSISTANT)

    def send_message(self, text: str) -> Optional[ChatMessage]:
        """
        Add a user message and the assistant's reply.

        Args:
            text: User input; blank input is ignored

        Returns:
            The assistant reply, or None if nothing was sent
        """
        if not text or not text.strip():
            return None

        self._append(text.strip(), Sender.USER)
        return self._append(self.reply_to(text), Sender.ASSISTANT)

    def reply_to(self, question: str) -> str:
        """Build the reply for one question without touching the transcript."""
        is_allowed, reason = self.safety_filter.validate_question(question)
        if not is_allowed:
            logger.info("Refused unsafe question")
            return (
                f"I cannot answer that question. {reason}\n\n"
                "I can only explain what the classifier detected in the X-ray."
            )

        if self.report is None:
            return self.safety_filter.inject_disclaimer("Please select an X-ray image first so I can analyze it.")

        return self.safety_filter.inject_disclaimer(self._answer(question.lower()))

    def _answer(self, question_lower: str) -> str:
        report = self.report
        intent = self._detect_intent(question_lower)

        if intent == 'confidence':
            response = f"The classifier is {format_percent(report.confidence)} confident in {report.classification}."
            if report.other_possibilities:
                response += f" Other possibilities: {format_possibilities(report.other_possibilities)}."
            return response

        if intent == 'severity':
            if report.severity is Severity.NORMAL:
                return "The severity is Normal: no significant abnormality was detected."
            return f"The severity is rated {report.severity.value} for {report.classification}."

        if intent == 'recommendations':
            steps = '\n'.join(f"• {rec}" for rec in report.recommendations)
            return f"Recommendations for {report.classification}:\n{steps}"

        if intent == 'alternatives':
            if not report.other_possibilities:
                return "No other possibilities were reported."
            return f"Other possibilities: {format_possibilities(report.other_possibilities)}."

        if intent == 'description':
            return report.description

        return (
            f"The X-ray was classified as {report.classification} "
            f"with {format_percent(report.confidence)} confidence "
            f"(severity: {report.severity.value})."
        )

    def _detect_intent(self, question_lower: str) -> str:
        """
        Detect user intent for targeted responses.

        Returns:
            'confidence', 'severity', 'recommendations', 'alternatives',
            'description' or 'general'
        """
        if any(p in question_lower for p in ['how confident', 'confidence', 'how sure', 'how accurate']):
            return 'confidence'

        if any(p in question_lower for p in ['severity', 'how serious', 'how severe', 'how bad']):
            return 'severity'

        if any(p in question_lower for p in ['recommend', 'what should', 'next step', 'what to do']):
            return 'recommendations'

        if any(p in question_lower for p in ['other possib', 'alternative', 'what else', 'could it be']):
            return 'alternatives'

        if any(p in question_lower for p in ['explain', 'describe', 'findings', 'what does it show']):
            return 'description'

        return 'general'

    def reset_conversation(self):
        """Clear the transcript back to the welcome message."""
        self._messages = []
        self._append(self.welcome_message, Sender.ASSISTANT)
        logger.info("Conversation history reset")


__all__ = ['ChatEngine', 'ChatMessage', 'Sender', 'WELCOME_MESSAGE']
