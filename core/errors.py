from __future__ import annotations


class DashboardError(Exception):
    """Base class for failures surfaced to the dashboard user as a message."""


class DatasetFetchError(DashboardError):
    """The dataset source could not be reached or read."""


class DatasetParseError(DashboardError):
    """The dataset was fetched but its content is not valid delimited text."""


class AuthError(DashboardError):
    """The identity provider rejected a registration or sign-in."""
