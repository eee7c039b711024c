from __future__ import annotations

import re
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

FEATURES = ("agents", "constitution", "skills", "hooks", "mcp_servers", "memory")

HookEvent = Literal[
    "PreToolUse",
    "PostToolUse",
    "UserPromptSubmit",
    "Notification",
    "Stop",
    "SubagentStop",
    "PreCompact",
    "SessionStart",
    "SessionEnd",
]

_VALID_ID_RE = re.compile(r"^[A-Za-z0-9_.-]+$")


def _check_id(kind: str, v: str) -> str:
    # ids become file and directory names on disk
    if not _VALID_ID_RE.match(v) or v in (".", ".."):
        raise ValueError(
            f"Invalid {kind} id: {v!r}. "
            "Use only letters, numbers, dots, hyphens, underscores."
        )
    return v


class Capabilities(BaseModel):
    """Which Team features a target platform understands. Never mutated."""

    model_config = {"populate_by_name": True, "frozen": True}

    agents: bool = False
    constitution: bool = False
    skills: bool = False
    hooks: bool = False
    mcp_servers: bool = Field(alias="mcpServers", default=False)
    memory: bool = False

    def supports(self, feature: str) -> bool:
        if feature not in FEATURES:
            raise ValueError(f"Unknown feature: {feature!r}")
        return getattr(self, feature)


class Agent(BaseModel):
    """Sub-agent definition, rendered as frontmatter + instruction body."""

    model_config = {"populate_by_name": True}

    id: str
    name: str
    description: str = ""
    tags: list[str] = Field(default_factory=list)
    tools: str | list[str] | None = Field(
        default=None,
        description="Tool whitelist, a single tool name, or '*' for all tools.",
    )
    model: str | None = None
    template: str = Field(default="", description="Instruction body.")
    custom_instructions: str | None = Field(alias="customInstructions", default=None)

    @field_validator("id")
    @classmethod
    def _validate_id(cls, v: str) -> str:
        return _check_id("agent", v)


class Skill(BaseModel):
    """Skill packaged as one directory holding a single manifest document."""

    model_config = {"populate_by_name": True}

    id: str
    name: str | None = None
    description: str | None = None
    content: str | None = None
    instructions: str | None = None

    @field_validator("id")
    @classmethod
    def _validate_id(cls, v: str) -> str:
        return _check_id("skill", v)

    @property
    def body(self) -> str:
        return self.content or self.instructions or ""


class Hook(BaseModel):
    model_config = {"populate_by_name": True}

    event: HookEvent
    matcher: str | None = None
    command: str
    name: str = ""
    description: str = ""


class McpServer(BaseModel):
    """MCP server entry, keyed by ``id`` in every target's server map."""

    model_config = {"populate_by_name": True}

    id: str
    type: Literal["stdio", "http", "sse"] = "stdio"
    command: str | None = None
    args: list[str] = Field(default_factory=list)
    url: str | None = None
    headers: dict[str, str] = Field(default_factory=dict)
    env: dict[str, str] = Field(default_factory=dict)


class SecurityPermissions(BaseModel):
    allow: list[str] = Field(default_factory=list)
    deny: list[str] = Field(default_factory=list)
    ask: list[str] = Field(default_factory=list)


class GlobalSecurity(BaseModel):
    """Team-wide permission policy. Ignored unless ``configured`` is set."""

    permissions: SecurityPermissions = Field(default_factory=SecurityPermissions)
    env: dict[str, str] = Field(default_factory=dict)
    configured: bool = False


class MemoryBank(BaseModel):
    """Persistent multi-document context (project brief, tech, active work)."""

    model_config = {"populate_by_name": True}

    project_brief: str | None = Field(alias="projectBrief", default=None)
    tech_context: str | None = Field(alias="techContext", default=None)
    active_context: str | None = Field(alias="activeContext", default=None)

    def is_empty(self) -> bool:
        return not (self.project_brief or self.tech_context or self.active_context)


class Team(BaseModel):
    """Platform-independent bundle of assistant configuration.

    Read-only input for a deploy call; providers never modify it.
    """

    model_config = {"populate_by_name": True}

    id: str
    name: str
    description: str = ""
    constitution: str | None = None
    agents: list[Agent] = Field(default_factory=list)
    skills: list[Skill] = Field(default_factory=list)
    hooks: list[Hook] = Field(default_factory=list)
    mcp_servers: list[McpServer] = Field(alias="mcpServers", default_factory=list)
    security: GlobalSecurity = Field(default_factory=GlobalSecurity)
    memory_bank: MemoryBank | None = Field(alias="memoryBank", default=None)
    settings: dict[str, Any] = Field(
        default_factory=dict,
        description="Extra top-level keys merged into the target settings document.",
    )

    @field_validator("agents")
    @classmethod
    def _unique_agent_ids(cls, v: list[Agent]) -> list[Agent]:
        ids = [a.id for a in v]
        if len(ids) != len(set(ids)):
            dupes = [i for i in ids if ids.count(i) > 1]
            raise ValueError(f"Duplicate agent ids: {set(dupes)}")
        return v

    @field_validator("skills")
    @classmethod
    def _unique_skill_ids(cls, v: list[Skill]) -> list[Skill]:
        ids = [s.id for s in v]
        if len(ids) != len(set(ids)):
            dupes = [i for i in ids if ids.count(i) > 1]
            raise ValueError(f"Duplicate skill ids: {set(dupes)}")
        return v

    def section_size(self, feature: str) -> int:
        """Number of items the Team carries for *feature* (0 when empty)."""
        if feature == "constitution":
            return 1 if self.constitution else 0
        if feature == "memory":
            return 0 if self.memory_bank is None or self.memory_bank.is_empty() else 1
        return len(getattr(self, feature))


class SettingsBundle(BaseModel):
    """Everything that folds into a target's settings document."""

    hooks: list[Hook] = Field(default_factory=list)
    security: GlobalSecurity = Field(default_factory=GlobalSecurity)
    extra: dict[str, Any] = Field(default_factory=dict)

    def is_empty(self) -> bool:
        return not (self.hooks or self.security.configured or self.extra)


class DeployOptions(BaseModel):
    """Per-call deployment switches. Every flag defaults to off."""

    model_config = {"populate_by_name": True}

    clear_existing: bool = Field(
        alias="clearExisting",
        default=False,
        description="Remove the provider root before writing. Destructive.",
    )
    use_local: bool = Field(
        alias="useLocal",
        default=False,
        description="Write the local-override variant of the constitution file.",
    )
    deploy_global: bool = Field(
        alias="deployGlobal",
        default=False,
        description="Also write the home-scoped constitution file.",
    )
    use_rules_folder: bool = Field(
        alias="useRulesFolder",
        default=False,
        description="Write rules as a folder of documents instead of one file.",
    )
    rules_file_name: str = Field(alias="rulesFileName", default="rules.md")
    deploy_memory_bank: bool = Field(alias="deployMemoryBank", default=False)

    @field_validator("rules_file_name")
    @classmethod
    def _validate_rules_file_name(cls, v: str) -> str:
        if not v or "/" in v or "\\" in v or v in (".", ".."):
            raise ValueError(f"Invalid rules file name: {v!r}")
        return v


class Outcome(BaseModel):
    """Result of a single feature step within one provider deploy."""

    status: Literal["success", "skipped", "error"] = "success"
    reason: str | None = None
    path: str | None = None
    paths: list[str] = Field(default_factory=list)
    count: int = 0
    error: str | None = None

    @property
    def skipped(self) -> bool:
        return self.status == "skipped"

    @classmethod
    def skip(cls, reason: str = "Not supported") -> Outcome:
        return cls(status="skipped", reason=reason)

    @classmethod
    def failed(cls, error: str) -> Outcome:
        return cls(status="error", error=error)


class DeploymentResult(BaseModel):
    target: str
    success: bool = True
    details: dict[str, Outcome] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: str | None = None


class ValidationWarning(BaseModel):
    target: str
    feature: str
    message: str


class ValidationResult(BaseModel):
    valid: bool = True
    warnings: list[ValidationWarning] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)


class TargetError(BaseModel):
    target: str
    error: str


class MultiDeploymentResult(BaseModel):
    results: dict[str, DeploymentResult] = Field(default_factory=dict)
    validation: ValidationResult = Field(default_factory=ValidationResult)
    errors: list[TargetError] = Field(default_factory=list)
    success: bool = True


class ArtifactStatus(BaseModel):
    """What is currently on disk for one output path of a target."""

    path: str
    exists: bool = False
    is_dir: bool = False
    file_count: int | None = None
    modified_at: str | None = None


class DeploymentStatus(BaseModel):
    model_config = {"populate_by_name": True}

    target: str
    deployed: bool = False
    project: dict[str, ArtifactStatus] = Field(default_factory=dict)
    global_: dict[str, ArtifactStatus] | None = Field(alias="global", default=None)
