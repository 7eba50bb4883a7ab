"""Token usage and cost accounting for generative calls."""

from pydantic import BaseModel, Field

# USD per 1M tokens
TOKEN_COSTS: dict[str, dict[str, float]] = {
    "gemini-2.5-flash": {"input": 0.30, "output": 2.50},
    "gemini-2.5-pro": {"input": 1.25, "output": 10.00},
    "gemini-3-flash-preview": {"input": 0.50, "output": 3.00},
}

DEFAULT_COSTS = TOKEN_COSTS["gemini-2.5-flash"]


def calculate_cost(model: str, input_tokens: int, output_tokens: int) -> float:
    """
    Cost in USD of one call.

    Unknown models are priced like gemini-2.5-flash.
    """
    costs = TOKEN_COSTS.get(model, DEFAULT_COSTS)
    return (input_tokens / 1_000_000) * costs["input"] + (output_tokens / 1_000_000) * costs["output"]


class AIUsage(BaseModel):
    """Usage of one or more generative calls."""

    model: str
    input_tokens: int = Field(default=0, ge=0)
    output_tokens: int = Field(default=0, ge=0)
    cost_usd: float = Field(default=0.0, ge=0.0)

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens

    @classmethod
    def from_tokens(cls, model: str, input_tokens: int, output_tokens: int) -> "AIUsage":
        return cls(
            model=model,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            cost_usd=calculate_cost(model, input_tokens, output_tokens),
        )


class UsageAccumulator:
    """
    Running total of usage for a single pipeline run.

    Every call is added, including the ones whose output is later thrown
    away by a retry, so totals only ever grow. Create one per run.
    """

    def __init__(self, model: str):
        self.model = model
        self.input_tokens = 0
        self.output_tokens = 0
        self.cost_usd = 0.0
        self.calls = 0

    def add(self, usage: AIUsage) -> None:
        self.input_tokens += usage.input_tokens
        self.output_tokens += usage.output_tokens
        self.cost_usd += usage.cost_usd
        self.calls += 1

    def snapshot(self) -> AIUsage:
        return AIUsage(
            model=self.model,
            input_tokens=self.input_tokens,
            output_tokens=self.output_tokens,
            cost_usd=self.cost_usd,
        )
