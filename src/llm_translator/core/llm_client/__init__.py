"""
LLM client package for LLM Translator.

Request building, error classification and the retrying, chunking
translation client.
"""

from .client import TranslationClient
from .errors import APIError, APIErrorType, classify_error, to_client_error
from .requests import RequestBuilder, adjust_temperature_for_model, model_supports_temperature
from .types import APIUsage, CancellationToken

__all__ = [
    "TranslationClient",
    "APIError",
    "APIErrorType",
    "classify_error",
    "to_client_error",
    "RequestBuilder",
    "adjust_temperature_for_model",
    "model_supports_temperature",
    "APIUsage",
    "CancellationToken",
]
