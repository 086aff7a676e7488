"""Command-line review client for the code overview service."""

from .client import ReviewResult, review_code
from .context import collect_context
from .errors import ReviewError

__all__ = ["ReviewError", "ReviewResult", "review_code", "collect_context"]
