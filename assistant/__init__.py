"""
X-Ray Assistant
===============

Orchestration on top of the bundled classifier:

- pipeline.py: image -> classifier -> knowledge base -> history
- scan_session.py: background inference with last-write-wins delivery
- chat/: template-based chat about the current report
- formatting.py: text helpers for chat and UI
"""

__version__ = "1.0.0"
