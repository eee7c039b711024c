import logging
from pathlib import Path
from typing import Any

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError

from teamforge.deployment import DeploymentService
from teamforge.errors import UnknownTargetError
from teamforge.loader import discover_and_load, load_team
from teamforge.models import DeployOptions, Team

logger = logging.getLogger(__name__)

# Replaced in tests with a service bound to a temporary home directory.
_service = DeploymentService()


mcp = FastMCP(
    name="teamforge",
    instructions=(
        "MCP server for deploying a Team (agents, skills, hooks, MCP servers, "
        "security policy, constitution) to AI coding assistants such as "
        "Claude Code, Gemini CLI and Cline."
    ),
)


def _resolve_team(
    team: dict[str, Any] | None,
    team_path: str | None,
    search_dir: str | None = None,
) -> Team:
    """Build a Team from an inline object, an explicit file, or discovery."""
    try:
        if team is not None:
            return Team.model_validate(team)
        if team_path:
            return load_team(team_path)
        found = discover_and_load(search_dir)
    except (ValueError, FileNotFoundError, ImportError) as e:
        raise ToolError(f"Invalid team: {e}")
    if found is None:
        raise ToolError(
            "No team given. Pass 'team' or 'team_path', or place "
            "teamforge_team.py in the project directory."
        )
    return found


def _resolve_options(options: dict[str, Any] | None) -> DeployOptions:
    try:
        return DeployOptions.model_validate(options or {})
    except ValueError as e:
        raise ToolError(f"Invalid options: {e}")


@mcp.tool
def list_targets() -> dict:
    """List the target platforms a Team can be deployed to."""
    return {"targets": _service.available_targets()}


@mcp.tool
def get_capabilities(target: str | None = None) -> dict:
    """Feature support map (agents, constitution, skills, hooks, mcpServers, memory)
    for one target, or for every target when none is given."""
    if target is None:
        return {
            t: caps.model_dump(by_alias=True)
            for t, caps in _service.get_all_capabilities().items()
        }
    try:
        return _service.get_capabilities(target).model_dump(by_alias=True)
    except UnknownTargetError as e:
        raise ToolError(str(e))


@mcp.tool(name="validate_deployment")
def validate_deployment_tool(
    targets: list[str],
    team: dict[str, Any] | None = None,
    team_path: str | None = None,
) -> dict:
    """Report which Team sections each target will skip. Writes nothing."""
    resolved = _resolve_team(team, team_path)
    return _service.validate(resolved, targets).model_dump(mode="json")


@mcp.tool(name="deploy")
def deploy_tool(
    target: str,
    project_path: str,
    team: dict[str, Any] | None = None,
    team_path: str | None = None,
    options: dict[str, Any] | None = None,
) -> dict:
    """Deploy a Team to one target. Options: clearExisting, useLocal, deployGlobal,
    useRulesFolder, rulesFileName, deployMemoryBank. clearExisting removes the
    target's existing directory first."""
    resolved = _resolve_team(team, team_path, project_path)
    opts = _resolve_options(options)
    logger.info("Deploy requested: team %s -> %s", resolved.id, target)
    try:
        result = _service.deploy(resolved, target, Path(project_path), opts)
    except UnknownTargetError as e:
        raise ToolError(str(e))
    return result.model_dump(mode="json")


@mcp.tool
def deploy_multiple(
    targets: list[str],
    project_path: str,
    team: dict[str, Any] | None = None,
    team_path: str | None = None,
    options: dict[str, Any] | None = None,
) -> dict:
    """Deploy a Team to several targets in order. A failing target is reported
    in 'errors' and does not stop the others."""
    resolved = _resolve_team(team, team_path, project_path)
    opts = _resolve_options(options)
    logger.info("Deploy requested: team %s -> %s", resolved.id, ", ".join(targets))
    result = _service.deploy_to_multiple(resolved, targets, Path(project_path), opts)
    return result.model_dump(mode="json")


@mcp.tool
def deployment_status(project_path: str, target: str | None = None) -> dict:
    """Show which files each target currently has on disk for a project."""
    try:
        if target is not None:
            return _service.inspect(target, project_path).model_dump(
                mode="json", by_alias=True
            )
        return {
            t: status.model_dump(mode="json", by_alias=True)
            for t, status in _service.inspect_all(project_path).items()
        }
    except UnknownTargetError as e:
        raise ToolError(str(e))


def main():
    logging.basicConfig(
        level=logging.INFO, format="%(levelname)s %(name)s: %(message)s"
    )
    mcp.run()


if __name__ == "__main__":
    main()
