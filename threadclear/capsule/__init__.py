"""
ThreadClear capsule - canonical conversation record and its assembler.
"""

from threadclear.capsule.assembler import assemble
from threadclear.capsule.features import analyze_message
from threadclear.capsule.models import (
    CapsuleMetadata,
    ConversationCapsule,
    LinguisticFeatures,
    Message,
    Participant,
)

__all__ = [
    "analyze_message",
    "assemble",
    "CapsuleMetadata",
    "ConversationCapsule",
    "LinguisticFeatures",
    "Message",
    "Participant",
]
