"""Interface for the external conversation analyzer (LLM-backed, out of process)."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from threadclear.analysis.models import AnalysisResult
    from threadclear.capsule.models import ConversationCapsule


@runtime_checkable
class ConversationAnalyzer(Protocol):
    """Anything that turns a capsule into an AnalysisResult.

    Implementations own prompt construction, model calls, retries and
    timeouts. Failures propagate to the caller; ThreadClear does not retry.
    """

    def analyze(self, capsule: ConversationCapsule) -> AnalysisResult: ...
