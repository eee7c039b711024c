from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from pathlib import Path
from typing import Any, ClassVar

import yaml

from teamforge.fs import LocalFileSystem
from teamforge.models import (
    Agent,
    ArtifactStatus,
    Capabilities,
    DeploymentResult,
    DeploymentStatus,
    DeployOptions,
    Hook,
    McpServer,
    MemoryBank,
    Outcome,
    SettingsBundle,
    Skill,
    Team,
)

logger = logging.getLogger(__name__)

# feature -> (plural label, unit noun)
_FEATURE_LABELS: dict[str, tuple[str, str]] = {
    "agents": ("sub-agents", "agent"),
    "constitution": ("a constitution", "constitution"),
    "skills": ("skills", "skill"),
    "hooks": ("hooks", "hook"),
    "mcp_servers": ("MCP servers", "server"),
    "memory": ("a memory bank", "memory bank"),
}

# Team sections deployed from Team contents, in write order.
_SECTION_ORDER = ("constitution", "agents", "skills", "hooks", "mcp_servers")


def describe_unsupported(label: str, feature: str, count: int, *, pending: bool) -> str:
    """Human-readable message for a non-empty Team section a target cannot hold."""
    what, unit = _FEATURE_LABELS[feature]
    verb = "will be skipped" if pending else "skipped"
    return f"{label} does not support {what}. {count} {unit}(s) {verb}."


def render_frontmatter(fields: dict[str, Any], body: str) -> str:
    """Render a markdown document with a YAML header block."""
    header = yaml.safe_dump(
        fields, default_flow_style=False, sort_keys=False, allow_unicode=True
    ).strip()
    return f"---\n{header}\n---\n\n{body}"


def mcp_server_entry(server: McpServer, *, typed: bool, with_headers: bool) -> dict:
    """Translate one :class:`McpServer` into a server-map entry.

    ``stdio`` entries carry ``command``/``args``; ``http``/``sse`` entries
    carry ``url`` (and ``headers`` when *with_headers*). ``env`` is appended to
    either shape when non-empty.
    """
    entry: dict[str, Any] = {"type": server.type} if typed else {}
    if server.type == "stdio":
        if server.command:
            entry["command"] = server.command
        if server.args:
            entry["args"] = list(server.args)
    else:
        if server.url:
            entry["url"] = server.url
        if with_headers and server.headers:
            entry["headers"] = dict(server.headers)
    if server.env:
        entry["env"] = dict(server.env)
    return entry


class Provider(ABC):
    """Serializes a :class:`Team` into one target platform's file layout.

    The public ``deploy_*`` methods are implemented once here: each checks the
    target's :class:`Capabilities` and returns a ``skipped`` outcome for an
    unsupported feature without touching the filesystem. Subclasses override
    the ``_deploy_*`` hooks for the features they support.
    """

    id: ClassVar[str]
    display_name: ClassVar[str]
    capabilities: ClassVar[Capabilities]

    # output path key -> suffix of counted children (None counts subdirectories)
    counted_dirs: ClassVar[dict[str, str | None]] = {}

    def __init__(
        self, project_path: str | Path, fs: LocalFileSystem | None = None
    ) -> None:
        self.project_path = Path(project_path)
        self.fs = fs or LocalFileSystem()

    @abstractmethod
    def output_paths(self, project_root: Path, home_dir: Path) -> dict[str, Path]:
        """Every file and directory this provider may touch. Must not do I/O."""

    @abstractmethod
    def prepare_directories(
        self, paths: dict[str, Path], options: DeployOptions
    ) -> None:
        """Create required directories; honor ``options.clear_existing``."""

    @property
    def paths(self) -> dict[str, Path]:
        return self.output_paths(self.project_path, self.fs.home_dir())

    # -- guarded public steps ----------------------------------------------

    def _guarded(
        self,
        feature: str,
        step: Callable[[Any, DeployOptions], Outcome],
        payload: Any,
        options: DeployOptions | None,
    ) -> Outcome:
        if not self.capabilities.supports(feature):
            logger.debug("[%s] %s not supported, skipping", self.id, feature)
            return Outcome.skip()
        return step(payload, options or DeployOptions())

    def deploy_constitution(
        self, text: str, options: DeployOptions | None = None
    ) -> Outcome:
        return self._guarded("constitution", self._deploy_constitution, text, options)

    def deploy_agents(
        self, agents: list[Agent], options: DeployOptions | None = None
    ) -> Outcome:
        return self._guarded("agents", self._deploy_agents, agents, options)

    def deploy_skills(
        self, skills: list[Skill], options: DeployOptions | None = None
    ) -> Outcome:
        return self._guarded("skills", self._deploy_skills, skills, options)

    def deploy_hooks(
        self, hooks: list[Hook], options: DeployOptions | None = None
    ) -> Outcome:
        return self._guarded("hooks", self._deploy_hooks, hooks, options)

    def deploy_mcp_servers(
        self, servers: list[McpServer], options: DeployOptions | None = None
    ) -> Outcome:
        return self._guarded("mcp_servers", self._deploy_mcp_servers, servers, options)

    def deploy_memory_bank(
        self, bank: MemoryBank, options: DeployOptions | None = None
    ) -> Outcome:
        return self._guarded("memory", self._deploy_memory_bank, bank, options)

    def deploy_settings(
        self, bundle: SettingsBundle, options: DeployOptions | None = None
    ) -> Outcome:
        return self._deploy_settings(bundle, options or DeployOptions())

    # -- provider hooks ------------------------------------------------------

    def _deploy_constitution(self, text: str, options: DeployOptions) -> Outcome:
        raise NotImplementedError(f"{type(self).__name__} cannot deploy constitution")

    def _deploy_agents(self, agents: list[Agent], options: DeployOptions) -> Outcome:
        raise NotImplementedError(f"{type(self).__name__} cannot deploy agents")

    def _deploy_skills(self, skills: list[Skill], options: DeployOptions) -> Outcome:
        raise NotImplementedError(f"{type(self).__name__} cannot deploy skills")

    def _deploy_hooks(self, hooks: list[Hook], options: DeployOptions) -> Outcome:
        raise NotImplementedError(f"{type(self).__name__} cannot deploy hooks")

    def _deploy_mcp_servers(
        self, servers: list[McpServer], options: DeployOptions
    ) -> Outcome:
        raise NotImplementedError(f"{type(self).__name__} cannot deploy MCP servers")

    def _deploy_memory_bank(self, bank: MemoryBank, options: DeployOptions) -> Outcome:
        return Outcome.skip(f"{self.display_name} has no memory bank layout")

    @abstractmethod
    def _deploy_settings(self, bundle: SettingsBundle, options: DeployOptions) -> Outcome:
        """Write (or deliberately skip) the target's settings document."""

    def memory_bank_for(self, team: Team) -> MemoryBank:
        return team.memory_bank or MemoryBank()

    # -- orchestration -------------------------------------------------------

    def deploy(self, team: Team, options: DeployOptions | None = None) -> DeploymentResult:
        """Write every non-empty Team section this target supports.

        A failure while preparing directories abandons the whole target. A
        failure inside one feature step is recorded against that feature and
        the remaining steps still run. Files already written stay on disk.
        """
        options = options or DeployOptions()
        result = DeploymentResult(target=self.id)

        try:
            self.prepare_directories(self.paths, options)
        except Exception as e:
            logger.warning("[%s] Failed to prepare directories: %s", self.id, e)
            result.success = False
            result.error = str(e)
            return result

        steps: dict[str, Callable[[Any, DeployOptions], Outcome]] = {
            "constitution": self.deploy_constitution,
            "agents": self.deploy_agents,
            "skills": self.deploy_skills,
            "hooks": self.deploy_hooks,
            "mcp_servers": self.deploy_mcp_servers,
        }
        for feature in _SECTION_ORDER:
            count = team.section_size(feature)
            if not count:
                continue
            if not self.capabilities.supports(feature):
                self._record_unsupported(result, feature, count)
                continue
            self._run_step(result, feature, steps[feature], getattr(team, feature), options)

        if options.deploy_memory_bank:
            if self.capabilities.memory:
                self._run_step(
                    result, "memory", self.deploy_memory_bank, self.memory_bank_for(team), options
                )
                outcome = result.details["memory"]
                if outcome.skipped:
                    message = f"{outcome.reason}. Memory bank skipped."
                    logger.warning("[%s] %s", self.id, message)
                    result.warnings.append(message)
            else:
                self._record_unsupported(result, "memory", 1)

        bundle = SettingsBundle(
            hooks=team.hooks if self.capabilities.hooks else [],
            security=team.security,
            extra=team.settings,
        )
        self._run_step(result, "settings", self.deploy_settings, bundle, options)

        if result.success:
            logger.info("[%s] Deployment complete", self.id)
        return result

    def _record_unsupported(self, result: DeploymentResult, feature: str, count: int) -> None:
        message = describe_unsupported(self.display_name, feature, count, pending=False)
        logger.warning("[%s] %s", self.id, message)
        result.details[feature] = Outcome.skip()
        result.warnings.append(message)

    def _run_step(
        self,
        result: DeploymentResult,
        feature: str,
        step: Callable[[Any, DeployOptions], Outcome],
        payload: Any,
        options: DeployOptions,
    ) -> None:
        try:
            outcome = step(payload, options)
        except Exception as e:
            logger.warning("[%s] Failed to deploy %s: %s", self.id, feature, e)
            outcome = Outcome.failed(str(e))
            failure = f"{feature}: {e}"
            result.success = False
            result.error = failure if result.error is None else f"{result.error}; {failure}"
        result.details[feature] = outcome

    # -- status --------------------------------------------------------------

    def inspect(self) -> DeploymentStatus:
        """Report which of this provider's output paths exist. Read-only."""
        status = DeploymentStatus(target=self.id)
        home = self.fs.home_dir()
        global_: dict[str, ArtifactStatus] = {}

        for key, path in self.paths.items():
            exists = self.fs.exists(path)
            artifact = ArtifactStatus(path=str(path), exists=exists)
            if exists:
                artifact.is_dir = self.fs.is_dir(path)
                artifact.modified_at = self.fs.modified_at(path)
                if artifact.is_dir and key in self.counted_dirs:
                    artifact.file_count = self.fs.count_entries(path, self.counted_dirs[key])
            if path.is_relative_to(self.project_path) or not path.is_relative_to(home):
                status.project[key] = artifact
            else:
                global_[key] = artifact

        status.global_ = global_ or None
        status.deployed = any(a.exists for a in status.project.values()) or any(
            a.exists for a in global_.values()
        )
        return status
