"""Recognition match storage and read paths."""

from .reconciler import MatchReconciler
from .suggestions import suggest_tags

__all__ = ["MatchReconciler", "suggest_tags"]
