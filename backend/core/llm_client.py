"""
DeepSeek chat-completions API client wrapper.
"""
import httpx
from typing import Optional, Dict, Any
from core.config import CompletionConfig, USER_AGENT


class RemoteServiceError(Exception):
    """Failure reported by the completion transport."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.code = code


class DeepSeekClient:
    """Async client for an OpenAI-compatible chat-completions endpoint."""

    def __init__(
        self,
        config: Optional[CompletionConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config or CompletionConfig()
        self.transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    def _get_client(self) -> httpx.AsyncClient:
        # One pooled client; concurrent calls share its keep-alive connections
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                transport=self.transport,
                limits=httpx.Limits(
                    max_connections=self.config.max_connections,
                    max_keepalive_connections=self.config.max_connections,
                    keepalive_expiry=30.0,
                ),
                headers={
                    "Authorization": f"Bearer {self.config.api_key}",
                    "Content-Type": "application/json",
                    "User-Agent": USER_AGENT,
                },
            )
        return self._client

    def build_payload(self, system_prompt: str, user_text: str) -> Dict[str, Any]:
        """Request body for one completion."""
        return {
            "model": self.config.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_text},
            ],
            "stream": False,
            "max_tokens": self.config.max_tokens,
            "temperature": self.config.temperature,
        }

    async def complete(self, system_prompt: str, user_text: str, timeout_seconds: float) -> str:
        """
        Send one completion request and return the reply text.

        Raises:
            RemoteServiceError: transport failure, HTTP status >= 400,
                truncated output or a reply without content
        """
        client = self._get_client()
        payload = self.build_payload(system_prompt, user_text)

        try:
            response = await client.post(
                self.config.api_url,
                json=payload,
                timeout=timeout_seconds,
            )
        except httpx.TimeoutException as e:
            raise RemoteServiceError(f"Request timeout after {timeout_seconds:.0f}s: {e}", code="ETIMEDOUT") from e
        except httpx.RemoteProtocolError as e:
            raise RemoteServiceError(f"Connection reset by server: {e}", code="ECONNRESET") from e
        except httpx.TransportError as e:
            raise RemoteServiceError(f"Connection error: {e}") from e

        if response.status_code >= 400:
            raise RemoteServiceError(
                f"HTTP {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )

        return self._extract_content(response)

    def _extract_content(self, response: httpx.Response) -> str:
        """Pull choices[0].message.content out of a completion reply."""
        try:
            data = response.json()
            choice = data["choices"][0]
            content = choice["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise RemoteServiceError(f"Invalid completion payload: missing content ({e})") from e

        if choice.get("finish_reason") == "length":
            raise RemoteServiceError(
                "Model output too long: finish_reason=length, max_tokens limit reached"
            )
        if not isinstance(content, str) or not content.strip():
            raise RemoteServiceError("Invalid completion payload: empty content")

        return content

    async def aclose(self) -> None:
        """Close the pooled connections."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

