from __future__ import annotations

from .client import OpenAIClientFactory, OpenAIConfigError, resolve_api_key
from .chat import ChatOptions, OpenAIOracle, TranslationOracle, build_preamble, user_message
from .models import OpenAIModel

__all__ = [
    'ChatOptions',
    'OpenAIClientFactory',
    'OpenAIConfigError',
    'OpenAIModel',
    'OpenAIOracle',
    'TranslationOracle',
    'build_preamble',
    'resolve_api_key',
    'user_message',
]
