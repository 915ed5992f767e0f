"""ThreadClear - Turn raw conversation threads into structured capsules and insights"""

from __future__ import annotations

__version__ = "1.0.0"


# Lazy imports so lightweight modules (parsing, taxonomy) load without the database layer
def __getattr__(name: str):
    if name == "parse_conversation":
        from threadclear.ingest import parse_conversation

        return parse_conversation

    if name in ("ConversationCapsule", "Participant", "Message"):
        from threadclear.capsule import models

        return getattr(models, name)

    if name == "SourceFormat":
        from threadclear.parsing.types import SourceFormat

        return SourceFormat

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)


__all__ = [
    "parse_conversation",
    "ConversationCapsule",
    "Participant",
    "Message",
    "SourceFormat",
]
