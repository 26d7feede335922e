"""Metrics service for tracking recommendation traffic.

Singleton service counting recommendation calls, their latency, which step
of the fallback cascade answered them, and recorded feedback.
"""

import threading
from collections import Counter
from typing import Dict


class MetricsService:
    """Singleton service for tracking API metrics.

    Thread-safe counters shared by all request handlers.
    """

    _instance = None
    _lock = threading.Lock()

    def __new__(cls):
        """Create singleton instance."""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super(MetricsService, cls).__new__(cls)
                    cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        """Initialize metrics counters."""
        if self._initialized:
            return

        self._lock = threading.Lock()
        self._reset_counters()
        self._initialized = True

    def _reset_counters(self) -> None:
        self._request_count = 0
        self._total_latency_ms = 0.0
        self._max_latency_ms = 0.0
        self._by_mode: Counter = Counter()
        self._by_step: Counter = Counter()
        self._feedback: Counter = Counter()

    def record_recommendation(self, mode: str, step: str, latency_ms: float) -> None:
        """Record a recommendation call.

        Args:
            mode: Requested mode (hybrid, content, popular, ...)
            step: Cascade step that produced the result
            latency_ms: Latency in milliseconds
        """
        with self._lock:
            self._request_count += 1
            self._total_latency_ms += latency_ms
            self._max_latency_ms = max(self._max_latency_ms, latency_ms)
            self._by_mode[mode] += 1
            self._by_step[step] += 1

    def record_feedback(self, feedback: str) -> None:
        with self._lock:
            self._feedback[feedback] += 1

    def get_metrics(self) -> Dict:
        """Get current metrics.

        Returns:
            Dictionary with request count, average and max latency, and
            per-mode, per-step and per-feedback counts.
        """
        with self._lock:
            avg_latency = (
                self._total_latency_ms / self._request_count
                if self._request_count > 0
                else 0.0
            )

            return {
                "request_count": self._request_count,
                "average_latency_ms": round(avg_latency, 2),
                "max_latency_ms": round(self._max_latency_ms, 2),
                "requests_by_mode": dict(self._by_mode),
                "requests_by_step": dict(self._by_step),
                "feedback": dict(self._feedback),
            }

    def reset(self) -> None:
        """Reset all metrics (useful for testing)."""
        with self._lock:
            self._reset_counters()


# Global singleton instance
metrics_service = MetricsService()
