from __future__ import annotations
import http.client
import json
import logging
from dataclasses import dataclass
from urllib import error, request
from .config import AgentSettings
from .prompt_builder import DEFAULT_MAX_CONTENT_CHARS, build_validation_prompt, truncate_content
logger = logging.getLogger(__name__)
NO_REPLY_FALLBACK = "No reply from model"
class ModelClientError(Exception):
    """Raised when the local model service cannot return a reply."""
class TransportError(ModelClientError):
    """The model endpoint answered with a non-success HTTP status."""
    def __init__(self, status_code: int, detail: str = "") -> None:
        self.status_code = status_code
        self.detail = detail
        message = f"HTTP error! status: {status_code}"
        if detail:
            message = f"{message}.{detail}"
        super().__init__(message)
class ConnectivityError(ModelClientError):
    """The model endpoint could not be reached at all."""
    def __init__(self, url: str, reason: object = "") -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"Could not connect to {url}: {reason}")
@dataclass
class OllamaClient:
    base_url: str = "http://localhost:11434"
    chat_path: str = "/api/chat"
    model: str = "gemma3:1b"
    max_content_chars: int = DEFAULT_MAX_CONTENT_CHARS
    timeout: float | None = None
    @classmethod
    def from_settings(cls, settings: AgentSettings) -> "OllamaClient":
        return cls(
            base_url=settings.base_url,
            chat_path=settings.chat_path,
            model=settings.model,
            max_content_chars=settings.max_content_chars,
            timeout=settings.timeout,
        )
    @property
    def url(self) -> str:
        path = self.chat_path
        if not path.startswith("/"):
            path = f"/{path}"
        return f"{self.base_url.rstrip('/')}{path}"
    def build_prompt(
        self,
        message: str,
        log_content: str | None = None,
        test_case_content: str | None = None,
    ) -> str:
        if log_content and test_case_content:
            return build_validation_prompt(
                truncate_content(log_content, self.max_content_chars),
                truncate_content(test_case_content, self.max_content_chars),
            )
        return message
    def send_chat(
        self,
        message: str,
        log_content: str | None = None,
        test_case_content: str | None = None,
    ) -> str:
        prompt = self.build_prompt(message, log_content, test_case_content)
        payload_body = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "stream": False,
        }
        url = self.url
        logger.debug(
            "Ollama request: url=%s model=%s message_length=%s log_length=%s "
            "test_case_length=%s prompt_length=%s",
            url,
            self.model,
            len(message or ""),
            len(log_content or ""),
            len(test_case_content or ""),
            len(prompt),
        )
        kwargs = {} if self.timeout is None else {"timeout": self.timeout}
        try:
            req = request.Request(
                url,
                data=json.dumps(payload_body).encode("utf-8"),
                headers={"Content-Type": "application/json"},
            )
            with request.urlopen(req, **kwargs) as resp:  # nosec: B310
                body = resp.read().decode("utf-8", errors="replace")
        except error.HTTPError as exc:
            detail = self._safe_read_error_body(exc)
            logger.error("Ollama HTTP error: status=%s url=%s", exc.code, url)
            raise TransportError(exc.code, detail) from exc
        except error.URLError as exc:
            logger.error("Ollama connection error: url=%s reason=%s", url, exc.reason)
            raise ConnectivityError(url, exc.reason) from exc
        except (http.client.HTTPException, OSError, ValueError) as exc:
            logger.error("Ollama connection error: url=%s reason=%s", url, exc)
            raise ConnectivityError(url, exc) from exc
        reply = self._extract_content(body)
        logger.debug("Ollama reply received: length=%s preview=%r", len(reply), reply[:100])
        return reply
    @staticmethod
    def _extract_content(body: str) -> str:
        try:
            data = json.loads(body)
        except json.JSONDecodeError:
            logger.warning("Ollama returned a non-JSON body; using fallback reply")
            return NO_REPLY_FALLBACK
        if not isinstance(data, dict):
            return NO_REPLY_FALLBACK
        message = data.get("message")
        if isinstance(message, dict):
            content = message.get("content")
            if isinstance(content, str) and content:
                return content
        content = data.get("content")
        if isinstance(content, str) and content:
            return content
        choices = data.get("choices")
        if isinstance(choices, list) and choices and isinstance(choices[0], dict):
            choice_message = choices[0].get("message") or {}
            if isinstance(choice_message, dict):
                content = choice_message.get("content")
                if isinstance(content, str) and content:
                    return content
        logger.warning("Ollama response had no recognised reply field; using fallback reply")
        return NO_REPLY_FALLBACK
    @staticmethod
    def _safe_read_error_body(exc: error.HTTPError) -> str:
        try:
            raw = exc.read()
        except Exception:
            return ""
        if not raw:
            return ""
        decoded = raw.decode("utf-8", errors="ignore").strip()
        if not decoded:
            return ""
        return f" Response body: {decoded[:500]}"
