"""
Ollama Vision Client

Thin client for Ollama's /api/generate endpoint with a vision model
(Qwen2.5-VL by default). One request per call, no streaming, no retries.
"""

import base64
import json
from dataclasses import dataclass
from typing import Optional, Dict, Any, List

import requests

from bluebutton.utils.logging import get_logger

logger = get_logger(__name__)


class ModelClientError(Exception):
    """Base error for model client failures."""


class ModelConnectionError(ModelClientError):
    """Endpoint unreachable or timed out."""


class ModelResponseError(ModelClientError):
    """Non-success status or a body without any usable record."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


@dataclass(frozen=True)
class ModelResponse:
    """One generated reply plus Ollama's timing counters (durations in ns)."""
    text: str
    done: bool = False
    model: str = ""
    eval_count: int = 0
    eval_duration: int = 0
    prompt_eval_count: int = 0
    total_duration: int = 0

    @property
    def eval_duration_ms(self) -> int:
        return self.eval_duration // 1_000_000

    def performance_summary(self) -> str:
        return f"{self.eval_count} tokens in {self.eval_duration_ms}ms"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ModelResponse':
        return cls(
            text=data.get('response') or "",
            done=bool(data.get('done', False)),
            model=data.get('model') or "",
            eval_count=int(data.get('eval_count') or 0),
            eval_duration=int(data.get('eval_duration') or 0),
            prompt_eval_count=int(data.get('prompt_eval_count') or 0),
            total_duration=int(data.get('total_duration') or 0),
        )


def select_final_response(body: str) -> Optional[ModelResponse]:
    """
    Pick the reply that matters from a body that may hold several JSON records.

    Chunked replies arrive as one JSON object per line. The last non-empty
    record marked done wins; otherwise the last non-empty record seen.
    Malformed lines are skipped.
    """
    last_done = None
    last_seen = None

    for line in body.split('\n'):
        line = line.strip()
        if not line:
            continue
        try:
            data = json.loads(line)
        except json.JSONDecodeError:
            logger.debug(f"Skipping malformed JSON line: {line[:80]}")
            continue
        if not isinstance(data, dict):
            continue

        record = ModelResponse.from_dict(data)
        if not record.text:
            continue
        last_seen = record
        if record.done:
            last_done = record

    return last_done or last_seen


class OllamaClient:
    """
    Vision-language model interface via Ollama.

    Usage:
        client = OllamaClient(model='qwen2.5vl:3b')
        reply = client.generate("Describe this image", image=png_bytes)
        print(reply.text)
    """

    def __init__(
        self,
        model: str = 'qwen2.5vl:3b',
        ollama_host: str = 'http://localhost:11434',
        timeout: float = 120.0,
        options: Optional[Dict[str, Any]] = None,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize the client.

        Args:
            model: Ollama model name
            ollama_host: Ollama API endpoint
            timeout: Request timeout in seconds
            options: Default generation options (temperature, top_p, num_predict)
            session: Optional requests session
        """
        self.model = model
        self.ollama_host = ollama_host.rstrip('/')
        self.timeout = timeout
        self.options = dict(options or {})
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls, config) -> 'OllamaClient':
        """Build from an OllamaConfig section."""
        return cls(
            model=config.model,
            ollama_host=config.host,
            timeout=config.timeout,
            options={
                'temperature': config.temperature,
                'top_p': config.top_p,
                'num_predict': config.num_predict,
            }
        )

    def list_models(self) -> List[str]:
        """Names of the models installed on the server."""
        try:
            response = self.session.get(f'{self.ollama_host}/api/tags', timeout=5)
        except requests.RequestException as e:
            raise ModelConnectionError(f"Cannot reach Ollama at {self.ollama_host}: {e}") from e

        if response.status_code != 200:
            raise ModelResponseError(
                f"Ollama tags request failed: {response.status_code}",
                status_code=response.status_code,
                body=response.text
            )
        try:
            models = response.json().get('models') or []
            return [m.get('name', '') for m in models]
        except (ValueError, AttributeError) as e:
            raise ModelResponseError(
                f"Ollama tags response is not a model list: {e}",
                status_code=response.status_code,
                body=response.text
            ) from e

    def is_available(self, check_model: bool = False) -> bool:
        """Check if Ollama is running and, optionally, the model is pulled."""
        try:
            names = self.list_models()
        except ModelClientError as e:
            logger.error(f"Ollama check failed: {e}")
            return False

        if check_model and not any(self.model in name for name in names):
            logger.warning(
                f"Model {self.model} not found. "
                f"Install with: ollama pull {self.model}"
            )
            return False
        return True

    @staticmethod
    def encode_image(image: bytes) -> str:
        return base64.b64encode(image).decode('utf-8')

    def build_payload(
        self,
        prompt: str,
        image: Optional[bytes] = None,
        options: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        payload = {
            'model': self.model,
            'prompt': prompt,
            'stream': False,
        }
        if image is not None:
            payload['images'] = [self.encode_image(image)]

        merged = {**self.options, **(options or {})}
        if merged:
            payload['options'] = merged
        return payload

    def generate(
        self,
        prompt: str,
        image: Optional[bytes] = None,
        options: Optional[Dict[str, Any]] = None
    ) -> ModelResponse:
        """
        Send one prompt (and optional image) and return the final reply.

        Args:
            prompt: Instruction text
            image: Encoded image bytes (PNG/JPEG)
            options: Per-call generation options, merged over the defaults

        Returns:
            The selected ModelResponse

        Raises:
            ModelConnectionError: endpoint unreachable or timed out
            ModelResponseError: non-200 status or no usable record in the body
        """
        payload = self.build_payload(prompt, image, options)
        logger.debug(f"POST {self.ollama_host}/api/generate model={self.model} image={'yes' if image else 'no'}")

        try:
            response = self.session.post(
                f'{self.ollama_host}/api/generate',
                json=payload,
                timeout=self.timeout
            )
        except requests.RequestException as e:
            raise ModelConnectionError(f"Ollama request failed: {e}") from e

        if response.status_code != 200:
            logger.error(f"Ollama error: {response.status_code}")
            raise ModelResponseError(
                f"Ollama returned {response.status_code}",
                status_code=response.status_code,
                body=response.text
            )

        result = select_final_response(response.text)
        if result is None:
            raise ModelResponseError(
                "No valid response found in JSON",
                status_code=response.status_code,
                body=response.text[:200]
            )

        logger.info(f"Model reply: {result.performance_summary()}")
        return result
