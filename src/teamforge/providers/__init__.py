"""Target providers and the registry keyed by target id."""

from __future__ import annotations

from teamforge.errors import UnknownTargetError
from teamforge.models import Capabilities
from teamforge.providers.base import Provider
from teamforge.providers.claude_code import ClaudeCodeProvider
from teamforge.providers.cline import ClineProvider
from teamforge.providers.gemini_cli import GeminiCliProvider

PROVIDERS: dict[str, type[Provider]] = {
    ClaudeCodeProvider.id: ClaudeCodeProvider,
    GeminiCliProvider.id: GeminiCliProvider,
    ClineProvider.id: ClineProvider,
}


def get_provider_class(target: str) -> type[Provider]:
    """Look up a provider class by target id.

    Raises:
        UnknownTargetError: If no provider is registered for *target*.
    """
    if target not in PROVIDERS:
        raise UnknownTargetError(target, list(PROVIDERS))
    return PROVIDERS[target]


def capabilities_of(target: str) -> Capabilities:
    return get_provider_class(target).capabilities


__all__ = [
    "PROVIDERS",
    "ClaudeCodeProvider",
    "ClineProvider",
    "GeminiCliProvider",
    "Provider",
    "capabilities_of",
    "get_provider_class",
]
