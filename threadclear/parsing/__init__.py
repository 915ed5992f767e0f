"""
ThreadClear parsing - format detection, name discovery and message extraction.
"""

from threadclear.parsing.detector import detect, resolve_format
from threadclear.parsing.extractor import extract, extract_email_body
from threadclear.parsing.names import discover_participants
from threadclear.parsing.types import DiscoveredParticipant, ExtractedMessage, SourceFormat

__all__ = [
    "detect",
    "resolve_format",
    "extract",
    "extract_email_body",
    "discover_participants",
    "DiscoveredParticipant",
    "ExtractedMessage",
    "SourceFormat",
]
