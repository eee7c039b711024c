"""Example Team definition.

Place this file (or a copy) in your project root as ``teamforge_team.py``.
Then use the ``validate_deployment`` and ``deploy_multiple`` MCP tools to
write it out for each assistant.

Usage (from an MCP client):
    validate_deployment(targets=["claude-code", "gemini-cli"])
    deploy_multiple(targets=["claude-code", "cline"], project_path="/path/to/project")
    deployment_status(project_path="/path/to/project")
"""

from teamforge.models import (
    Agent,
    GlobalSecurity,
    Hook,
    McpServer,
    SecurityPermissions,
    Skill,
    Team,
)

team = Team(
    id="dev-team",
    name="Dev Team",
    description="A small development team with a developer and a reviewer.",
    constitution=(
        "# Project Rules\n\n"
        "- Run the test suite before reporting work as done.\n"
        "- Never commit secrets.\n"
    ),
    agents=[
        Agent(
            id="dev",
            name="dev",
            description="Implements features and fixes bugs",
            tags=["implementation"],
            tools=["Read", "Edit", "Write", "Bash"],
            model="sonnet",
            template="You are a developer. Implement the requested change and write tests.",
        ),
        Agent(
            id="reviewer",
            name="reviewer",
            description="Reviews code for correctness and security",
            tags=["review"],
            tools=["Read", "Grep", "Glob"],
            template="You are a code reviewer. Read the changed files and report issues.",
            custom_instructions="Flag any file that touches authentication.",
        ),
    ],
    skills=[
        Skill(
            id="release-notes",
            name="release-notes",
            description="Draft release notes from merged changes",
            content="Summarize merged changes grouped by feature, fix and chore.",
        ),
    ],
    hooks=[
        Hook(
            event="PostToolUse",
            matcher="Edit|Write",
            command="npx prettier --write \"$CLAUDE_FILE_PATHS\"",
            name="format",
            description="Format edited files",
        ),
    ],
    mcp_servers=[
        McpServer(
            id="github",
            type="stdio",
            command="npx",
            args=["-y", "@modelcontextprotocol/server-github"],
            env={"GITHUB_PERSONAL_ACCESS_TOKEN": "${GITHUB_TOKEN}"},
        ),
    ],
    security=GlobalSecurity(
        configured=True,
        permissions=SecurityPermissions(
            allow=["Bash(npm test *)"],
            deny=["Read(.env)", "Read(secrets/**)"],
        ),
    ),
)
