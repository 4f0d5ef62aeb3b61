"""Chat assistant for the current analysis"""
from .chat_engine import ChatEngine, ChatMessage, Sender, WELCOME_MESSAGE
from .safety_rules import SafetyFilter

__all__ = [
    'ChatEngine',
    'ChatMessage',
    'Sender',
    'WELCOME_MESSAGE',
    'SafetyFilter',
]
