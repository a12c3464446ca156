"""
Structured extraction trace.

Collects what the router tried and why things were dropped so callers can
inspect a run without parsing logs. Never used for control flow.
"""

import json
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

MAX_DROPPED = 20


@dataclass
class TraceAttempt:
    """One extractor invocation."""
    extractor: str
    outcome: str  # hit | miss | rejected | error
    reason: Optional[str] = None
    length: int = 0
    elapsed_ms: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "extractor": self.extractor,
            "outcome": self.outcome,
            "reason": self.reason,
            "length": self.length,
            "elapsedMs": round(self.elapsed_ms, 1),
        }


@dataclass
class ExtractionTrace:
    """Diagnostics for one pipeline run."""
    url: Optional[str] = None
    host: str = ""
    flags: Dict[str, Any] = field(default_factory=dict)
    attempts: List[TraceAttempt] = field(default_factory=list)
    dropped: List[Dict[str, str]] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    notes: Dict[str, Any] = field(default_factory=dict)
    started_at: float = field(default_factory=time.perf_counter)
    elapsed_ms: float = 0.0

    def attempt(self, extractor: str, outcome: str, reason: Optional[str] = None,
                length: int = 0, elapsed_ms: float = 0.0) -> TraceAttempt:
        record = TraceAttempt(extractor, outcome, reason, length, elapsed_ms)
        self.attempts.append(record)
        return record

    def drop(self, token: str, reason: str) -> None:
        if len(self.dropped) < MAX_DROPPED:
            self.dropped.append({"token": token[:80], "reason": reason})

    def warn(self, warning: str) -> None:
        if warning not in self.warnings:
            self.warnings.append(warning)

    def finish(self) -> "ExtractionTrace":
        self.elapsed_ms = (time.perf_counter() - self.started_at) * 1000
        return self

    @property
    def winner(self) -> Optional[str]:
        for record in self.attempts:
            if record.outcome == "hit":
                return record.extractor
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "host": self.host,
            "flags": dict(self.flags),
            "attempts": [a.to_dict() for a in self.attempts],
            "dropped": list(self.dropped),
            "warnings": list(self.warnings),
            "notes": dict(self.notes),
            "winner": self.winner,
            "elapsedMs": round(self.elapsed_ms, 1),
        }

    def summary_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, default=str)
