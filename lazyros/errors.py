"""Exceptions shared across the dashboard."""


class SetupError(Exception):
    """Terminal or Graph Service could not be brought up; fatal before the loop starts."""


class GraphServiceError(Exception):
    """A discovery call, publish or subscription stream failed."""
