"""ChatGPT engine used as the remote command-resolution fallback."""

import logging
import aiohttp

from ..errors import RemoteResolutionFailure

logger = logging.getLogger(__name__)


class ChatGPTCommandEngine:
    """Sends a command with a system instruction to ChatGPT and returns the reply."""

    def __init__(self, api_key: str, model: str = "gpt-4o-mini",
                 max_tokens: int = 4, temperature: float = 0.0,
                 base_url: str = "https://api.openai.com/v1/chat/completions"):
        """Initialize ChatGPT command engine.

        Args:
            api_key: OpenAI API key
            model: ChatGPT model to use
            max_tokens: Reply budget; an action token needs very few
            temperature: Sampling temperature, 0 for deterministic replies
            base_url: Chat completions endpoint
        """
        self.api_key = api_key
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.base_url = base_url

        logger.info(f"ChatGPTCommandEngine initialized with model: {model}")

    async def send_command(self, command: str, system_prompt: str) -> str:
        """Send a user command under a system prompt and get the reply text.

        Raises:
            RemoteResolutionFailure: If the key is missing, the request fails,
                or the response cannot be parsed
        """
        if not self.api_key:
            raise RemoteResolutionFailure("API key is not set")

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json"
        }

        data = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": command}
            ],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens
        }

        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(self.base_url, headers=headers, json=data) as response:
                    if response.status != 200:
                        error_text = await response.text()
                        raise RemoteResolutionFailure(f"ChatGPT API error: {response.status} - {error_text}")

                    result = await response.json()
        except aiohttp.ClientError as e:
            raise RemoteResolutionFailure(f"Request failed: {e}") from e

        try:
            return result["choices"][0]["message"]["content"].strip()
        except (KeyError, IndexError, TypeError, AttributeError) as e:
            raise RemoteResolutionFailure(f"Failed to parse response: {e}") from e
