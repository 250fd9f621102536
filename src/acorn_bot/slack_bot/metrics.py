"""Request metrics for the Acorn Slack bot.

Counts answered questions per backend, agent-to-model fallbacks, citations
and failures, and keeps a rolling window of latencies for the periodic
summary line.
"""

import threading
from collections import deque

LATENCY_WINDOW = 100
SUMMARY_EVERY = 10


class AcornMetrics:
    """In-process counters shared by the socket-mode bot and Lambda handler."""

    def __init__(self):
        self.total_requests = 0
        self.errors = 0
        self.agent_fallbacks = 0
        self.citations_returned = 0
        self.backend_usage = {}
        self.latencies = deque(maxlen=LATENCY_WINDOW)
        self._lock = threading.Lock()

    def record_request(
        self,
        duration_ms: float,
        source_backend: str | None = None,
        citations: int = 0,
        fell_back: bool = False,
        error: bool = False,
    ):
        """Record one answered (or failed) question.

        Args:
            duration_ms: Wall time from question to final answer
            source_backend: "agent" or "model" (None if no backend answered)
            citations: Number of citations attached to the answer
            fell_back: Whether the agent failed and the model answered instead
            error: Whether the request ended in a failure
        """
        with self._lock:
            self.total_requests += 1
            self.latencies.append(duration_ms)
            self.citations_returned += citations
            self.agent_fallbacks += int(fell_back)
            self.errors += int(error)
            if source_backend:
                self.backend_usage[source_backend] = self.backend_usage.get(source_backend, 0) + 1

    def should_log_summary(self) -> bool:
        return self.total_requests > 0 and self.total_requests % SUMMARY_EVERY == 0

    def maybe_log_summary(self):
        """Print the summary line on every SUMMARY_EVERY-th request."""
        if self.should_log_summary():
            self.log_summary()

    @staticmethod
    def _rate(count: int, total: int) -> str:
        return f"{100 * count / max(1, total):.1f}%"

    def get_stats(self) -> dict:
        """Snapshot of the counters, with rates and latency formatted for logs."""
        with self._lock:
            latencies = sorted(self.latencies)
            avg_response = sum(latencies) / len(latencies) if latencies else 0
            p95_response = latencies[int(0.95 * (len(latencies) - 1))] if latencies else 0
            return {
                "total_requests": self.total_requests,
                "agent_fallbacks": self.agent_fallbacks,
                "fallback_rate": self._rate(self.agent_fallbacks, self.total_requests),
                "citations_returned": self.citations_returned,
                "errors": self.errors,
                "error_rate": self._rate(self.errors, self.total_requests),
                "avg_response_ms": f"{avg_response:.0f}",
                "p95_response_ms": f"{p95_response:.0f}",
                "backend_usage": dict(sorted(self.backend_usage.items(), key=lambda item: -item[1])),
            }

    def log_summary(self):
        stats = self.get_stats()
        usage = ", ".join(f"{name}={count}" for name, count in stats["backend_usage"].items()) or "none"
        print(
            f"[Acorn Metrics] Requests: {stats['total_requests']} ({usage}) | "
            f"Fallbacks: {stats['agent_fallbacks']} ({stats['fallback_rate']}) | "
            f"Errors: {stats['errors']} ({stats['error_rate']}) | "
            f"Citations: {stats['citations_returned']} | "
            f"Latency avg/p95: {stats['avg_response_ms']}/{stats['p95_response_ms']}ms"
        )


_metrics = AcornMetrics()


def get_metrics() -> AcornMetrics:
    """Return the process-wide metrics instance."""
    return _metrics
