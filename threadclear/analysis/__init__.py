"""
ThreadClear analysis - contract for the external conversation analyzer.
"""

from threadclear.analysis.collaborator import ConversationAnalyzer
from threadclear.analysis.models import (
    ActionItem,
    AnalysisResult,
    ConversationHealth,
    Decision,
    Misalignment,
    TensionPoint,
    UnansweredQuestion,
)

__all__ = [
    "ConversationAnalyzer",
    "ActionItem",
    "AnalysisResult",
    "ConversationHealth",
    "Decision",
    "Misalignment",
    "TensionPoint",
    "UnansweredQuestion",
]
