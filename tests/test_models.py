from __future__ import annotations

import pytest
from pydantic import ValidationError

from teamforge.models import (
    Agent,
    Capabilities,
    DeployOptions,
    MemoryBank,
    Outcome,
    SettingsBundle,
    Skill,
    Team,
)


class TestCapabilities:
    def test_defaults_support_nothing(self):
        caps = Capabilities()
        assert caps.agents is False
        assert caps.mcp_servers is False
        assert caps.memory is False

    def test_frozen(self):
        caps = Capabilities(agents=True)
        with pytest.raises(ValidationError):
            caps.agents = False

    def test_supports_lookup(self):
        caps = Capabilities(mcpServers=True)
        assert caps.supports("mcp_servers") is True
        assert caps.supports("hooks") is False

    def test_supports_unknown_feature_raises(self):
        with pytest.raises(ValueError, match="Unknown feature"):
            Capabilities().supports("plugins")

    def test_camel_case_dump(self):
        data = Capabilities(mcp_servers=True).model_dump(by_alias=True)
        assert data["mcpServers"] is True


class TestTeam:
    def test_accepts_camel_case_payload(self):
        team = Team.model_validate(
            {
                "id": "t",
                "name": "T",
                "mcpServers": [{"id": "fs", "type": "stdio", "command": "npx"}],
                "agents": [
                    {
                        "id": "dev",
                        "name": "dev",
                        "customInstructions": "Be brief.",
                    }
                ],
                "memoryBank": {"projectBrief": "brief"},
            }
        )
        assert team.mcp_servers[0].id == "fs"
        assert team.agents[0].custom_instructions == "Be brief."
        assert team.memory_bank.project_brief == "brief"

    def test_duplicate_agent_ids_rejected(self):
        with pytest.raises(ValidationError, match="Duplicate agent ids"):
            Team(
                id="t",
                name="T",
                agents=[Agent(id="dev", name="a"), Agent(id="dev", name="b")],
            )

    def test_duplicate_skill_ids_rejected(self):
        with pytest.raises(ValidationError, match="Duplicate skill ids"):
            Team(id="t", name="T", skills=[Skill(id="s"), Skill(id="s")])

    @pytest.mark.parametrize("bad_id", ["../escape", "a/b", "..", "has space"])
    def test_agent_id_must_be_file_safe(self, bad_id: str):
        with pytest.raises(ValidationError, match="Invalid agent id"):
            Agent(id=bad_id, name="x")

    def test_unknown_hook_event_rejected(self):
        with pytest.raises(ValidationError):
            Team.model_validate(
                {"id": "t", "name": "T", "hooks": [{"event": "OnSave", "command": "x"}]}
            )

    def test_section_size(self):
        team = Team(
            id="t",
            name="T",
            constitution="rules",
            agents=[Agent(id="a", name="a"), Agent(id="b", name="b")],
        )
        assert team.section_size("constitution") == 1
        assert team.section_size("agents") == 2
        assert team.section_size("skills") == 0
        assert team.section_size("memory") == 0

    def test_section_size_memory_ignores_empty_bank(self):
        team = Team(id="t", name="T", memory_bank=MemoryBank())
        assert team.section_size("memory") == 0


class TestSkill:
    def test_body_prefers_content(self):
        assert Skill(id="s", content="c", instructions="i").body == "c"

    def test_body_falls_back_to_instructions(self):
        assert Skill(id="s", instructions="i").body == "i"

    def test_body_empty(self):
        assert Skill(id="s").body == ""


class TestDeployOptions:
    def test_defaults(self):
        opts = DeployOptions()
        assert opts.clear_existing is False
        assert opts.use_rules_folder is False
        assert opts.rules_file_name == "rules.md"
        assert opts.deploy_memory_bank is False

    def test_camel_case_keys(self):
        opts = DeployOptions.model_validate(
            {"clearExisting": True, "useRulesFolder": True, "rulesFileName": "team.md"}
        )
        assert opts.clear_existing is True
        assert opts.rules_file_name == "team.md"

    @pytest.mark.parametrize("name", ["", "../rules.md", "sub/rules.md"])
    def test_rules_file_name_must_be_plain(self, name: str):
        with pytest.raises(ValidationError, match="Invalid rules file name"):
            DeployOptions(rules_file_name=name)


class TestOutcome:
    def test_skip_default_reason(self):
        outcome = Outcome.skip()
        assert outcome.skipped is True
        assert outcome.reason == "Not supported"

    def test_failed(self):
        outcome = Outcome.failed("disk full")
        assert outcome.status == "error"
        assert outcome.error == "disk full"
        assert outcome.skipped is False


class TestSettingsBundle:
    def test_empty_when_nothing_configured(self):
        assert SettingsBundle().is_empty() is True

    def test_configured_security_is_not_empty(self):
        bundle = SettingsBundle.model_validate({"security": {"configured": True}})
        assert bundle.is_empty() is False
