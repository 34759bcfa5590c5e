"""Talk page discussion parsing and mention notifications."""

from __future__ import annotations

from talkwatch.interpreter import DiscussionInterpreter, InterpretationCache
from talkwatch.mentions import MentionClassifier
from talkwatch.notifier import DiscussionNotifier
from talkwatch.signatures import SignatureLocator, TildeSignatureEngine

__all__: list[str] = [
    "DiscussionInterpreter",
    "DiscussionNotifier",
    "InterpretationCache",
    "MentionClassifier",
    "SignatureLocator",
    "TildeSignatureEngine",
]
