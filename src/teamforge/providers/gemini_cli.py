from __future__ import annotations

import logging
from pathlib import Path

from teamforge.models import (
    Capabilities,
    DeployOptions,
    McpServer,
    Outcome,
    SettingsBundle,
)
from teamforge.providers.base import Provider, mcp_server_entry

logger = logging.getLogger(__name__)


class GeminiCliProvider(Provider):
    """Constrained target whose settings live in the user's home directory.

    ``~/.gemini/settings.json`` is shared by every project and may hold keys
    written by Gemini CLI itself, so it is always read, merged and written
    back under a file lock, never replaced.
    """

    id = "gemini-cli"
    display_name = "Gemini CLI"
    capabilities = Capabilities(
        agents=False,
        constitution=True,
        skills=False,
        hooks=False,
        mcp_servers=True,
        memory=True,
    )

    def output_paths(self, project_root: Path, home_dir: Path) -> dict[str, Path]:
        root = home_dir / ".gemini"
        return {
            "root": root,
            "constitution": project_root / "GEMINI.md",
            "global_constitution": root / "GEMINI.md",
            "settings": root / "settings.json",
        }

    def prepare_directories(self, paths: dict[str, Path], options: DeployOptions) -> None:
        if options.clear_existing:
            logger.info(
                "[%s] Ignoring clearExisting: %s is shared across projects",
                self.id,
                paths["root"],
            )
        self.fs.mkdir(paths["root"])

    def _deploy_constitution(self, text: str, options: DeployOptions) -> Outcome:
        paths = self.paths
        self.fs.write_text(paths["constitution"], text)
        logger.info("[%s] Constitution deployed to %s", self.id, paths["constitution"])
        written = [str(paths["constitution"])]

        if options.deploy_global:
            self.fs.write_text(paths["global_constitution"], text)
            logger.info(
                "[%s] Global constitution deployed to %s",
                self.id,
                paths["global_constitution"],
            )
            written.append(str(paths["global_constitution"]))

        return Outcome(path=str(paths["constitution"]), paths=written, count=len(written))

    def _merge_settings(self, updates: dict) -> Path:
        """Load settings.json, assign *updates* at top level, write it back."""
        path = self.paths["settings"]
        with self.fs.locked(path):
            settings = self.fs.read_json(path)
            settings.update(updates)
            self.fs.write_json(path, settings)
        return path

    def _deploy_mcp_servers(
        self, servers: list[McpServer], options: DeployOptions
    ) -> Outcome:
        mcp_servers = {
            server.id: mcp_server_entry(server, typed=False, with_headers=False)
            for server in servers
        }
        path = self._merge_settings({"mcpServers": mcp_servers})
        logger.info("[%s] Deployed %d MCP servers to %s", self.id, len(servers), path)
        return Outcome(path=str(path), count=len(servers))

    def _deploy_settings(self, bundle: SettingsBundle, options: DeployOptions) -> Outcome:
        # Hooks and permission policy have no Gemini CLI equivalent; only
        # explicit extra keys are merged.
        if not bundle.extra:
            return Outcome.skip("No settings to merge")

        path = self._merge_settings(dict(bundle.extra))
        logger.info("[%s] Settings merged into %s", self.id, path)
        return Outcome(path=str(path), count=len(bundle.extra))
