"""Deploy a Team of assistant configuration to AI coding assistant targets."""

from teamforge.deployment import DeploymentService
from teamforge.errors import DeploymentError, UnknownTargetError
from teamforge.models import DeployOptions, Team

__all__ = [
    "DeploymentError",
    "DeploymentService",
    "DeployOptions",
    "Team",
    "UnknownTargetError",
]
