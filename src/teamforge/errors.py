from __future__ import annotations


class DeploymentError(Exception):
    """Raised when a deployment cannot proceed for a target."""


class UnknownTargetError(DeploymentError):
    def __init__(self, target: str, available: list[str]) -> None:
        self.target = target
        self.available = available
        super().__init__(
            f"Unknown target: {target} (available: {', '.join(available)})"
        )
