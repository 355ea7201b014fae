"""AI Agents package."""

from bliq_money.agents.advisor import (
    AdviceError,
    AdviceGeneratorInterface,
    GeminiAdviceAgent,
    build_advice_prompt,
    split_paragraphs,
)

__all__ = [
    "AdviceError",
    "AdviceGeneratorInterface",
    "GeminiAdviceAgent",
    "build_advice_prompt",
    "split_paragraphs",
]
