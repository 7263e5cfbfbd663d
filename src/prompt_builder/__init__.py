"""
prompt-builder - client-side state engine for assembling AI prompts

Holds categories, sections, the user's selection and custom prompt text,
applies optimistic changes against a remote gateway with rollback, and
compiles the selection into a single prompt string.
"""

__version__ = "0.1.0"

from .builder import PromptBuilder
from .compiler import CompiledPrompt, compile_prompt
from .config import PromptBuilderConfig
from .coordinator import MutationCoordinator
from .errors import (
    ConflictError,
    GatewayError,
    GatewayTimeoutError,
    NetworkError,
    NotFoundError,
    PromptBuilderError,
    ValidationError,
)
from .gateway import Gateway, InMemoryGateway
from .http_gateway import HttpGateway
from .models import Category, CustomPrompt, Section
from .store import PromptStore

__all__ = [
    "PromptBuilder",
    "CompiledPrompt",
    "compile_prompt",
    "PromptBuilderConfig",
    "MutationCoordinator",
    "ConflictError",
    "GatewayError",
    "GatewayTimeoutError",
    "NetworkError",
    "NotFoundError",
    "PromptBuilderError",
    "ValidationError",
    "Gateway",
    "InMemoryGateway",
    "HttpGateway",
    "Category",
    "CustomPrompt",
    "Section",
    "PromptStore",
]
