from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from .compiler import CompiledPrompt, compile_prompt
from .config import PromptBuilderConfig
from .coordinator import MutationCoordinator
from .gateway import Gateway
from .http_gateway import HttpGateway
from .store import PromptStore


@dataclass
class PromptBuilder:
    """One independent prompt-building session: a store, its gateway and coordinator."""

    gateway: Gateway
    store: PromptStore = field(default_factory=PromptStore)
    coordinator: MutationCoordinator = field(init=False)

    def __post_init__(self) -> None:
        self.coordinator = MutationCoordinator(self.store, self.gateway)

    @classmethod
    def from_config(cls, config: Optional[PromptBuilderConfig] = None) -> "PromptBuilder":
        return cls(gateway=HttpGateway(config or PromptBuilderConfig()))

    async def initialize(self) -> None:
        await self.coordinator.load_all()

    def compile(self) -> CompiledPrompt:
        return compile_prompt(self.store)

    async def compile_remote(self) -> str:
        """Ask the server to compile the current selection and custom prompt."""
        custom = self.store.custom_prompt
        return await self.gateway.compile_remote(
            self.store.selection, custom.text if custom.enabled else None
        )

    async def aclose(self) -> None:
        await self.gateway.aclose()

    async def __aenter__(self) -> "PromptBuilder":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()
