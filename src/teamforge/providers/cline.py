from __future__ import annotations

import logging
from pathlib import Path

from teamforge.errors import DeploymentError
from teamforge.models import (
    Capabilities,
    DeployOptions,
    McpServer,
    MemoryBank,
    Outcome,
    SettingsBundle,
    Team,
)
from teamforge.providers.base import Provider, mcp_server_entry

logger = logging.getLogger(__name__)

_MEMORY_BANK_FILES = (
    ("project_brief", "projectBrief.md"),
    ("tech_context", "techContext.md"),
    ("active_context", "activeContext.md"),
)


def seed_memory_bank(team: Team) -> MemoryBank:
    """Derive a starter memory bank from the Team when it carries none."""
    brief = f"# {team.name}\n\n{team.description}".rstrip() + "\n"

    tech: list[str] = ["# Tech Context", ""]
    if team.mcp_servers:
        tech.append("## MCP Servers")
        tech.append("")
        tech.extend(f"- {s.id} ({s.type})" for s in team.mcp_servers)
        tech.append("")
    if team.agents:
        tech.append("## Agents")
        tech.append("")
        tech.extend(
            f"- {a.name}: {a.description}" if a.description else f"- {a.name}"
            for a in team.agents
        )
        tech.append("")

    active = "# Active Context\n"
    if team.constitution:
        active += f"\n{team.constitution}\n"

    return MemoryBank(
        project_brief=brief,
        tech_context="\n".join(tech).rstrip() + "\n",
        active_context=active,
    )


class ClineProvider(Provider):
    """VS Code extension target.

    Rules go to ``.clinerules`` either as a single file or, with
    ``use_rules_folder``, as a folder of documents. The memory bank is opt-in
    via ``deploy_memory_bank``. MCP servers go to ``.vscode/mcp.json``.
    """

    id = "cline"
    display_name = "Cline"
    capabilities = Capabilities(
        agents=False,
        constitution=True,
        skills=False,
        hooks=False,
        mcp_servers=True,
        memory=True,
    )
    counted_dirs = {"rules_folder": ".md", "memory_bank": ".md"}

    def output_paths(self, project_root: Path, home_dir: Path) -> dict[str, Path]:
        memory_bank = project_root / "memory-bank"
        return {
            "rules_file": project_root / ".clinerules",
            "rules_folder": project_root / ".clinerules",
            "memory_bank": memory_bank,
            "project_brief": memory_bank / "projectBrief.md",
            "tech_context": memory_bank / "techContext.md",
            "active_context": memory_bank / "activeContext.md",
            "vscode": project_root / ".vscode",
            "mcp": project_root / ".vscode" / "mcp.json",
        }

    def prepare_directories(self, paths: dict[str, Path], options: DeployOptions) -> None:
        rules = paths["rules_folder"]

        if options.clear_existing:
            logger.info("[%s] Clearing %s", self.id, rules)
            self.fs.remove(rules)
            if options.deploy_memory_bank:
                logger.info("[%s] Clearing %s", self.id, paths["memory_bank"])
                self.fs.remove(paths["memory_bank"])

        if options.deploy_memory_bank:
            self.fs.mkdir(paths["memory_bank"])
        self.fs.mkdir(paths["vscode"])

    def _check_rules_layout(self, rules: Path, options: DeployOptions) -> None:
        # .clinerules may be user-owned; only a deploy that writes rules cares
        # whether it is a file or a folder.
        if not self.fs.exists(rules):
            return
        is_folder = self.fs.is_dir(rules)
        if is_folder != options.use_rules_folder:
            existing = "folder" if is_folder else "file"
            raise DeploymentError(
                f"{rules} already exists as a {existing}; "
                "pass clearExisting to switch the rules layout"
            )

    def _deploy_constitution(self, text: str, options: DeployOptions) -> Outcome:
        paths = self.paths
        self._check_rules_layout(paths["rules_folder"], options)
        if options.use_rules_folder:
            self.fs.mkdir(paths["rules_folder"])
            target = paths["rules_folder"] / options.rules_file_name
        else:
            target = paths["rules_file"]

        self.fs.write_text(target, text)
        logger.info("[%s] Rules deployed to %s", self.id, target)
        return Outcome(
            path=str(target),
            reason="folder" if options.use_rules_folder else "file",
            count=1,
        )

    def memory_bank_for(self, team: Team) -> MemoryBank:
        if team.memory_bank is not None and not team.memory_bank.is_empty():
            return team.memory_bank
        return seed_memory_bank(team)

    def _deploy_memory_bank(self, bank: MemoryBank, options: DeployOptions) -> Outcome:
        paths = self.paths
        files: list[str] = []
        for field_name, file_name in _MEMORY_BANK_FILES:
            content = getattr(bank, field_name)
            if not content:
                continue
            self.fs.write_text(paths["memory_bank"] / file_name, content)
            files.append(file_name)

        logger.info("[%s] Memory bank deployed: %s", self.id, ", ".join(files))
        return Outcome(path=str(paths["memory_bank"]), paths=files, count=len(files))

    def _deploy_mcp_servers(
        self, servers: list[McpServer], options: DeployOptions
    ) -> Outcome:
        path = self.paths["mcp"]
        config = {
            "mcpServers": {
                server.id: mcp_server_entry(server, typed=False, with_headers=False)
                for server in servers
            }
        }
        self.fs.write_json(path, config)
        logger.info("[%s] Deployed %d MCP servers to %s", self.id, len(servers), path)
        return Outcome(path=str(path), count=len(servers))

    def _deploy_settings(self, bundle: SettingsBundle, options: DeployOptions) -> Outcome:
        return Outcome.skip(
            "Cline settings are managed through VS Code extension settings"
        )
