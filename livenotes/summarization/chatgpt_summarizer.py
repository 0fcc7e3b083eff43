"""ChatGPT summarizer for live transcripts."""

import logging
import aiohttp

logger = logging.getLogger(__name__)

DEFAULT_PROMPT = (
    "Summarize the following live transcript as concise Markdown notes. "
    "Use a short heading and bullet points, and do not invent details "
    "that are not in the transcript.\n\nTranscript:\n{transcript}"
)


class ChatGPTSummarizer:
    """Sends transcripts to ChatGPT and returns the summary."""

    def __init__(self,
                 api_key: str,
                 model: str = "gpt-4o-mini",
                 prompt: str = DEFAULT_PROMPT,
                 temperature: float = 0.3,
                 max_tokens: int = 500,
                 timeout: float = 60.0):
        """Initialize ChatGPT summarizer.

        Args:
            api_key: OpenAI API key
            model: ChatGPT model to use for summaries
            prompt: Prompt template with a ``{transcript}`` placeholder
            temperature: Temperature for response generation (0.0 to 1.0)
            max_tokens: Maximum tokens in response
            timeout: Total request timeout in seconds
        """
        if "{transcript}" not in prompt:
            raise ValueError("Summary prompt must contain a {transcript} placeholder")
        self.api_key = api_key
        self.model = model
        self.prompt = prompt
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout
        self.base_url = "https://api.openai.com/v1/chat/completions"

        logger.info(f"ChatGPTSummarizer initialized with model: {model}")

    async def summarize(self, text: str) -> str:
        """Summarize a transcript.

        Raises:
            RuntimeError: If API call fails
        """
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json"
        }

        data = {
            "model": self.model,
            "messages": [
                {
                    "role": "user",
                    "content": self.prompt.format(transcript=text)
                }
            ],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens
        }

        timeout = aiohttp.ClientTimeout(total=self.timeout)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.post(self.base_url, headers=headers, json=data) as response:
                if response.status != 200:
                    error_text = await response.text()
                    raise RuntimeError(f"ChatGPT API error: {response.status} - {error_text}")

                result = await response.json()
                return result["choices"][0]["message"]["content"].strip()
