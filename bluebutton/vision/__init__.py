"""
Vision Module

Vision-language model access and reply parsing:
- Ollama client for Qwen2.5-VL
- Button reply parser
- Main content analysis parser
"""

from .ollama_client import (
    OllamaClient,
    ModelResponse,
    ModelClientError,
    ModelConnectionError,
    ModelResponseError,
)
from .response_parser import ResponseParser, parse_buttons
from .content_analysis import MainContentAnalysis, parse_main_content

__all__ = [
    'OllamaClient', 'ModelResponse', 'ModelClientError', 'ModelConnectionError',
    'ModelResponseError', 'ResponseParser', 'parse_buttons',
    'MainContentAnalysis', 'parse_main_content',
]
