from __future__ import annotations

try:
    import openai as _openai
except ImportError:
    _openai = None  # type: ignore[assignment]

from prpilot_core.errors import InvocationTimeout, RateLimited, UpstreamError
from prpilot_core.providers.base import BaseReviewer


class OpenAIReviewer(BaseReviewer):
    MODEL = "gpt-4o"
    TEMPERATURE = 0.2

    def __init__(self, api_key: str, model: str | None = None, timeout: float = 600.0):
        if _openai is None:
            raise ImportError(
                "The 'openai' package is required for this provider. " "Install it with: pip install 'prpilot[openai]'"
            )
        self.client = _openai.OpenAI(api_key=api_key, timeout=timeout)
        if model:
            self.MODEL = model

    def _call_api(self, system_prompt: str, user_prompt: str) -> str:
        try:
            response = self.client.chat.completions.create(
                model=self.MODEL,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=self.TEMPERATURE,
                max_tokens=self.MAX_TOKENS,
            )
        # Order matters: timeouts and rate limits are both APIError subclasses.
        except _openai.APITimeoutError as e:
            raise InvocationTimeout(str(e)) from e
        except _openai.RateLimitError as e:
            raise RateLimited(str(e)) from e
        except _openai.APIError as e:
            raise UpstreamError(str(e)) from e
        return response.choices[0].message.content or ""
