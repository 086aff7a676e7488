"""Errors raised by the review client."""


class ReviewError(Exception):
    """A review could not be produced. The message is shown to the user."""
