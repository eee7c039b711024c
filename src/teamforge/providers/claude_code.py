from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from teamforge.models import (
    Agent,
    Capabilities,
    DeployOptions,
    Hook,
    McpServer,
    Outcome,
    SettingsBundle,
    Skill,
)
from teamforge.providers.base import Provider, mcp_server_entry, render_frontmatter

logger = logging.getLogger(__name__)

SETTINGS_VERSION = "1.0.0"


def render_agent(agent: Agent) -> str:
    """Render an agent definition as ``.claude/agents/{id}.md`` content."""
    fields: dict[str, Any] = {"name": agent.name, "description": agent.description}
    if agent.tags:
        fields["tags"] = list(agent.tags)
    if agent.tools:
        fields["tools"] = agent.tools
    if agent.model:
        fields["model"] = agent.model

    body = agent.template
    if agent.custom_instructions:
        body += f"\n\n## Custom Instructions\n\n{agent.custom_instructions}"
    return render_frontmatter(fields, body)


def render_skill(skill: Skill) -> str:
    fields: dict[str, Any] = {}
    if skill.name:
        fields["name"] = skill.name
    if skill.description:
        fields["description"] = skill.description
    if not fields:
        return skill.body
    return render_frontmatter(fields, skill.body)


def build_hooks_config(hooks: list[Hook]) -> dict[str, list[dict]]:
    """Group hooks by event: ``{event: [{name, command, description, matcher?}]}``."""
    config: dict[str, list[dict]] = {}
    for hook in hooks:
        entry: dict[str, Any] = {
            "name": hook.name,
            "command": hook.command,
            "description": hook.description,
        }
        if hook.matcher:
            entry["matcher"] = hook.matcher
        config.setdefault(hook.event, []).append(entry)
    return config


def build_settings(bundle: SettingsBundle) -> dict[str, Any]:
    """Build the ``.claude/settings.json`` document from hooks and security policy."""
    settings: dict[str, Any] = {"version": SETTINGS_VERSION}

    if bundle.hooks:
        settings["hooks"] = build_hooks_config(bundle.hooks)

    security = bundle.security
    if security.configured:
        perms = {
            key: list(values)
            for key, values in (
                ("allow", security.permissions.allow),
                ("deny", security.permissions.deny),
                ("ask", security.permissions.ask),
            )
            if values
        }
        if perms:
            settings["permissions"] = perms
        if security.env:
            settings["env"] = dict(security.env)

    for key, value in bundle.extra.items():
        settings.setdefault(key, value)
    return settings


class ClaudeCodeProvider(Provider):
    """Full-feature, project-scoped target.

    Layout::

        CLAUDE.md / CLAUDE.local.md   constitution
        .claude/agents/{id}.md        agents (YAML frontmatter + body)
        .claude/skills/{id}/SKILL.md  skills
        .claude/settings.json         hooks, permissions, env
        .claude/.mcp.json             MCP servers
    """

    id = "claude-code"
    display_name = "Claude Code"
    capabilities = Capabilities(
        agents=True,
        constitution=True,
        skills=True,
        hooks=True,
        mcp_servers=True,
        memory=False,
    )
    counted_dirs = {"agents": ".md", "skills": None}

    def output_paths(self, project_root: Path, home_dir: Path) -> dict[str, Path]:
        root = project_root / ".claude"
        return {
            "root": root,
            "agents": root / "agents",
            "commands": root / "commands",
            "skills": root / "skills",
            "settings": root / "settings.json",
            "settings_local": root / "settings.local.json",
            "mcp": root / ".mcp.json",
            "constitution": project_root / "CLAUDE.md",
            "constitution_local": project_root / "CLAUDE.local.md",
        }

    def prepare_directories(self, paths: dict[str, Path], options: DeployOptions) -> None:
        if options.clear_existing:
            logger.info("[%s] Clearing %s", self.id, paths["root"])
            self.fs.remove(paths["root"])

        for key in ("root", "agents", "commands", "skills"):
            self.fs.mkdir(paths[key])

    def _deploy_constitution(self, text: str, options: DeployOptions) -> Outcome:
        paths = self.paths
        target = paths["constitution_local"] if options.use_local else paths["constitution"]
        self.fs.write_text(target, text)
        logger.info("[%s] Constitution deployed to %s", self.id, target)
        return Outcome(path=str(target), count=1)

    def _deploy_agents(self, agents: list[Agent], options: DeployOptions) -> Outcome:
        agents_dir = self.paths["agents"]
        files: list[str] = []
        for agent in agents:
            file_name = f"{agent.id}.md"
            self.fs.write_text(agents_dir / file_name, render_agent(agent))
            files.append(file_name)

        logger.info("[%s] Deployed %d agents", self.id, len(files))
        return Outcome(path=str(agents_dir), paths=files, count=len(files))

    def _deploy_skills(self, skills: list[Skill], options: DeployOptions) -> Outcome:
        skills_dir = self.paths["skills"]
        dirs: list[str] = []
        for skill in skills:
            skill_dir = skills_dir / skill.id
            self.fs.mkdir(skill_dir)
            self.fs.write_text(skill_dir / "SKILL.md", render_skill(skill))
            dirs.append(skill.id)

        logger.info("[%s] Deployed %d skills", self.id, len(dirs))
        return Outcome(path=str(skills_dir), paths=dirs, count=len(dirs))

    def _deploy_hooks(self, hooks: list[Hook], options: DeployOptions) -> Outcome:
        # Written by _deploy_settings as part of settings.json.
        return Outcome(
            path=str(self.paths["settings"]),
            reason="Hooks are written to settings.json",
            count=len(hooks),
        )

    def _deploy_mcp_servers(
        self, servers: list[McpServer], options: DeployOptions
    ) -> Outcome:
        path = self.paths["mcp"]
        config = {
            "mcpServers": {
                server.id: mcp_server_entry(server, typed=True, with_headers=True)
                for server in servers
            }
        }
        self.fs.write_json(path, config)
        logger.info("[%s] Deployed %d MCP servers", self.id, len(servers))
        return Outcome(path=str(path), count=len(servers))

    def _deploy_settings(self, bundle: SettingsBundle, options: DeployOptions) -> Outcome:
        if bundle.is_empty():
            return Outcome.skip("No hooks, security policy or extra settings to write")

        path = self.paths["settings"]
        self.fs.write_json(path, build_settings(bundle))
        logger.info("[%s] Settings deployed to %s", self.id, path)
        return Outcome(path=str(path), count=1)
