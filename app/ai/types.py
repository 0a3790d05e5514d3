from dataclasses import dataclass
from typing import Literal, Protocol


Role = Literal["system", "user", "assistant"]


@dataclass(frozen=True)
class ChatMessage:
    role: Role
    content: str


@dataclass(frozen=True)
class Completion:
    """Outcome of one generation call: either text or a non-success status."""

    text: str | None = None
    status_code: int | None = None

    @property
    def ok(self) -> bool:
        return self.status_code is None or 200 <= self.status_code < 300


class TextGenerator(Protocol):
    async def complete(
        self, system_prompt: str, user_prompt: str, temperature: float
    ) -> Completion: ...
