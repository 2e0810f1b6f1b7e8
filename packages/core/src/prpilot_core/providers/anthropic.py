from __future__ import annotations

from prpilot_core.errors import InvocationTimeout, RateLimited, UpstreamError
from prpilot_core.providers.base import BaseReviewer


class AnthropicReviewer(BaseReviewer):
    MODEL = "claude-sonnet-4-20250514"
    TEMPERATURE = 0.3

    def __init__(self, api_key: str, model: str | None = None, timeout: float = 600.0):
        try:
            from anthropic import Anthropic
        except ImportError:
            raise ImportError(
                "The 'anthropic' package is required for this provider. "
                "Install it with: pip install 'prpilot[anthropic]'"
            )
        self.client = Anthropic(api_key=api_key, timeout=timeout)
        if model:
            self.MODEL = model

    def _call_api(self, system_prompt: str, user_prompt: str) -> str:
        # Imported inside the method because the anthropic package is optional;
        # __init__ already validated it is installed before we reach here.
        import anthropic
        from anthropic.types import TextBlock

        try:
            response = self.client.messages.create(
                model=self.MODEL,
                system=system_prompt,
                messages=[{"role": "user", "content": user_prompt}],
                temperature=self.TEMPERATURE,
                max_tokens=self.MAX_TOKENS,
            )
        except anthropic.APITimeoutError as e:
            raise InvocationTimeout(str(e)) from e
        except anthropic.RateLimitError as e:
            raise RateLimited(str(e)) from e
        except anthropic.APIError as e:
            raise UpstreamError(str(e)) from e
        text_blocks = [block.text for block in response.content if isinstance(block, TextBlock)]
        return "".join(text_blocks)
