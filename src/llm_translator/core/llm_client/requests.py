"""
Request building utilities for the LLM client package.

This module provides:
- Temperature support helpers for model-specific temperature handling
- RequestBuilder class for building chat completion parameters
"""

from typing import Any, Dict, List

from loguru import logger


def model_supports_temperature(model: str) -> bool:
    """
    Check if the model supports custom temperature values.

    Reasoning models (o1, o3, GPT-5) only support temperature=1.0.

    Args:
        model: Model name (e.g., "gpt-5-nano", "o1-preview", "gpt-4.1-nano")

    Returns:
        True if model supports custom temperature, False otherwise.
    """
    model_lower = model.lower()

    restricted_prefixes = [
        "o1",
        "o3",
        "o4",
        "gpt-5",
    ]

    for prefix in restricted_prefixes:
        if model_lower.startswith(prefix):
            logger.debug(f"Model '{model}' is restricted (prefix: {prefix}), temperature must be 1.0")
            return False

    return True


def adjust_temperature_for_model(model: str, temperature: float) -> float:
    """Force temperature=1.0 for models that reject custom values."""
    if not model_supports_temperature(model):
        if temperature != 1.0:
            logger.info(
                f"Model '{model}' does not support custom temperature. "
                f"Overriding {temperature} -> 1.0"
            )
        return 1.0
    return temperature


class RequestBuilder:
    """Builds chat completion parameters for a translation request."""

    def __init__(self, temperature: float = 0.3):
        self._temperature = temperature

    @property
    def temperature(self) -> float:
        return self._temperature

    @staticmethod
    def build_messages(system_prompt: str, text: str) -> List[Dict[str, str]]:
        return [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": text},
        ]

    def build_params(self, *, model: str, system_prompt: str, text: str) -> Dict[str, Any]:
        """
        Build API params with the temperature adjusted for the model.

        Args:
            model: Model name.
            system_prompt: Instructions for the model.
            text: Text to translate.

        Returns:
            Dictionary of API parameters.
        """
        temperature = adjust_temperature_for_model(model, round(float(self._temperature), 2))
        return {
            "model": model,
            "messages": self.build_messages(system_prompt, text),
            "temperature": temperature,
        }


__all__ = [
    "model_supports_temperature",
    "adjust_temperature_for_model",
    "RequestBuilder",
]
