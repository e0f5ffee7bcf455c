"""Generation settings for the answer agent.

Provider API keys live in ``config.toml`` (see ``src.config``); this module
only carries the sampling parameters shared by every chat model.
"""

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field

# Load environment variables from .env file
load_dotenv()


class AgentConfig(BaseModel):
    """Sampling configuration applied to every chat model.

    Attributes:
        temperature: Sampling temperature override (0.0 = deterministic,
            2.0 = creative). None keeps each model's own temperature.
        max_tokens: Maximum tokens in a generated answer.
        history_limit: Number of prior conversation turns included in prompts.
    """

    temperature: float | None = Field(
        default_factory=lambda: (
            float(os.environ["LLM_TEMPERATURE"]) if os.getenv("LLM_TEMPERATURE") else None
        ),
        ge=0.0,
        le=2.0,
        description="Sampling temperature for response generation",
    )
    max_tokens: int = Field(
        default_factory=lambda: int(os.getenv("LLM_MAX_TOKENS", "2048")),
        ge=1,
        le=128000,
        description="Maximum tokens in generated response",
    )
    history_limit: int = Field(
        default=20,
        ge=0,
        description="Prior messages (~10 turns) rendered into the prompt",
    )


def get_agent_config() -> AgentConfig:
    """Create agent configuration from environment.

    Raises:
        ValueError: If an environment override is out of range.
    """
    return AgentConfig()
