"""Base reviewer implementing the Template Method pattern.

All providers share the same algorithm:
    review() → _build_system_prompt() + _build_user_prompt()
             → _call_api()   ← only this differs per provider

Subclasses implement two things only:
  - __init__: validate and store the SDK client
  - _call_api: make one raw API call, translate SDK errors into
    ReasoningError subclasses, and return the text response

There is no retry here. A failed call leaves the target without a witness,
and a later delivery of an equivalent event runs the pipeline again.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from prpilot_core.errors import UpstreamError
from prpilot_core.utils.context import render_context

if TYPE_CHECKING:
    from prpilot_core.utils.context import ReviewContext

logger = logging.getLogger(__name__)

_MAX_TOKENS = 4096


class BaseReviewer(ABC):
    MODEL: str = ""
    MAX_TOKENS: int = _MAX_TOKENS

    # ------------------------------------------------------------------ #
    # Public interface                                                     #
    # ------------------------------------------------------------------ #

    def review(self, context: ReviewContext) -> str:
        """Run one reasoning call for the context and return its text.

        Raises InvocationTimeout, RateLimited or UpstreamError on failure.
        """
        system = self._build_system_prompt()
        user = self._build_user_prompt(context)
        raw = self._call_api(system, user)
        text = (raw or "").strip()
        if not text:
            raise UpstreamError(f"{self.__class__.__name__} returned an empty response")
        logger.debug("%s returned %d chars", self.__class__.__name__, len(text))
        return text

    # ------------------------------------------------------------------ #
    # Abstract, implemented by each provider                              #
    # ------------------------------------------------------------------ #

    @abstractmethod
    def _call_api(self, system_prompt: str, user_prompt: str) -> str:
        """Make a single API call and return the raw text response."""

    # ------------------------------------------------------------------ #
    # Shared implementations                                               #
    # ------------------------------------------------------------------ #

    def _build_system_prompt(self) -> str:
        return (
            "You are an expert code reviewer commenting on GitHub pull requests. "
            "Only use information present in the pull request data you are given."
        )

    def _build_user_prompt(self, context: ReviewContext) -> str:
        pr_info = render_context(context)
        if context.instruction:
            return f"""As an expert code reviewer, please focus on the following instruction while reviewing the pull request:

"{context.instruction}"

Here is the PR information:

{pr_info}
Provide a concise and specific response addressing the instruction above. Avoid unnecessary information or general feedback. Ensure accuracy and refrain from including any information not present in the PR data."""

        return f"""As an expert code reviewer, please review the following pull request:

{pr_info}
Please focus on potential issues, improvements, or suggestions. Be succinct and clear in your feedback. If the PR is ready to merge, please indicate that as well. If you notice the PR addresses disparate issues better handled separately, suggest splitting it into smaller, focused PRs.

Provide a concise response without unnecessary elaboration or hallucinations."""
