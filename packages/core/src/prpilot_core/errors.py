"""Error taxonomy for the review pipeline.

Rejections (no target, wrong reviewer, ...) and skips (already seen, already
fulfilled) are not errors and are modelled as values in prpilot_core.models.
Only genuine failures are exceptions.
"""

from __future__ import annotations


class PrPilotError(Exception):
    """Base class for every error raised by prpilot."""


class SignatureInvalid(PrPilotError):
    """A webhook body did not match its HMAC signature."""


class ReasoningError(PrPilotError):
    """The reasoning engine did not return a usable response."""


class InvocationTimeout(ReasoningError):
    pass


class RateLimited(ReasoningError):
    pass


class UpstreamError(ReasoningError):
    pass


class WriteError(PrPilotError):
    """Publishing the review comment failed."""


class TaskTrackerError(PrPilotError):
    """An Asana API call failed."""
