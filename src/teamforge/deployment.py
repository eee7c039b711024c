from __future__ import annotations

import logging
from pathlib import Path

from teamforge.errors import UnknownTargetError
from teamforge.fs import LocalFileSystem
from teamforge.models import (
    Capabilities,
    DeploymentResult,
    DeploymentStatus,
    DeployOptions,
    MultiDeploymentResult,
    TargetError,
    Team,
    ValidationResult,
)
from teamforge.providers import PROVIDERS, Provider
from teamforge.validation import validate_deployment

logger = logging.getLogger(__name__)


class DeploymentService:
    """Deploys a Team to one or more target platforms.

    The service:
    - Resolves target ids to providers
    - Validates which Team sections each target will drop
    - Deploys targets one after another
    - Isolates failures so one target never aborts the others

    Targets run sequentially: the Gemini CLI settings document is shared
    across projects and updated by read-merge-write.
    """

    def __init__(
        self,
        fs: LocalFileSystem | None = None,
        providers: dict[str, type[Provider]] | None = None,
    ) -> None:
        self.fs = fs or LocalFileSystem()
        self._providers = dict(providers) if providers is not None else dict(PROVIDERS)

    def available_targets(self) -> list[str]:
        return list(self._providers)

    def _provider_class(self, target: str) -> type[Provider]:
        if target not in self._providers:
            raise UnknownTargetError(target, self.available_targets())
        return self._providers[target]

    def get_provider(self, target: str, project_path: str | Path) -> Provider:
        """Instantiate the provider for *target*.

        Raises:
            UnknownTargetError: If *target* is not registered.
        """
        return self._provider_class(target)(project_path, fs=self.fs)

    def get_capabilities(self, target: str) -> Capabilities:
        return self._provider_class(target).capabilities

    def get_all_capabilities(self) -> dict[str, Capabilities]:
        return {target: cls.capabilities for target, cls in self._providers.items()}

    def validate(self, team: Team, targets: list[str]) -> ValidationResult:
        return validate_deployment(team, targets, self.get_capabilities)

    def deploy(
        self,
        team: Team,
        target: str,
        project_path: str | Path,
        options: DeployOptions | None = None,
    ) -> DeploymentResult:
        """Deploy *team* to a single target.

        Raises:
            UnknownTargetError: Before any I/O when *target* is not registered.
        """
        provider = self.get_provider(target, project_path)
        logger.info("Deploying team %s to %s", team.id, target)
        return provider.deploy(team, options or DeployOptions())

    def deploy_to_multiple(
        self,
        team: Team,
        targets: list[str],
        project_path: str | Path,
        options: DeployOptions | None = None,
    ) -> MultiDeploymentResult:
        """Deploy *team* to every target in order, collecting per-target results.

        Validation is informational and never blocks a deploy. An exception
        raised for one target (including an unknown id) becomes that target's
        failed result; the remaining targets still run.
        """
        options = options or DeployOptions()
        logger.info(
            "Deploying to %d target(s): %s", len(targets), ", ".join(targets)
        )

        validation = self.validate(team, targets)
        for warning in validation.warnings:
            logger.warning("[%s] %s", warning.target, warning.message)

        outcome = MultiDeploymentResult(validation=validation)
        for target in targets:
            try:
                result = self.deploy(team, target, project_path, options)
            except Exception as e:
                logger.warning("Failed to deploy to %s: %s", target, e)
                result = DeploymentResult(target=target, success=False, error=str(e))

            outcome.results[target] = result
            if not result.success:
                outcome.errors.append(
                    TargetError(target=target, error=result.error or "Deployment failed")
                )

        outcome.success = not outcome.errors
        return outcome

    def inspect(self, target: str, project_path: str | Path) -> DeploymentStatus:
        """Report what is currently deployed for *target*. Read-only."""
        return self.get_provider(target, project_path).inspect()

    def inspect_all(self, project_path: str | Path) -> dict[str, DeploymentStatus]:
        return {
            target: self.inspect(target, project_path) for target in self._providers
        }
