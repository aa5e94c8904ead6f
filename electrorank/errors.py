"""Exception taxonomy for the daily ranking job."""
from __future__ import annotations


class ElectroRankError(RuntimeError):
    """Base class for all errors raised by the pipeline."""


class FeedError(ElectroRankError):
    """A product feed was unavailable or returned malformed data."""


class RenderError(ElectroRankError):
    """A single page could not be rendered, written or logged."""


class StoreError(ElectroRankError):
    """The product store is unavailable; fatal for the current run."""


class NotifyError(ElectroRankError):
    """An external index notification failed."""
