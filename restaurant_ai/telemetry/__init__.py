from .aggregator import compute_performance_metrics
from .feedback import FeedbackStore
from .store import EventStore

__all__ = ["EventStore", "FeedbackStore", "compute_performance_metrics"]
