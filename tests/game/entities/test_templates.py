"""
Unit tests for YAML combatant and gem templates.
"""

import pytest

from cardarena.core.data import MAX_GEM_SLOTS, SkillType
from cardarena.game.entities import (
    create_combatant,
    create_combatant_gems,
    load_combatant_templates,
    load_gem_templates,
)


class TestPackagedTemplates:
    """Test the templates shipped with the package."""

    def test_gem_catalogue_covers_every_skill(self):
        gems = load_gem_templates()
        assert {gem.skill_type for gem in gems.values()} == set(SkillType)

    def test_gem_ids_match_keys(self):
        for gem_id, gem in load_gem_templates().items():
            assert gem.id == gem_id

    def test_combatant_gems_exist(self):
        """Every referenced gem is in the catalogue and fits the slots."""
        gems = load_gem_templates()
        for template in load_combatant_templates().values():
            assert len(template.gem_ids) <= MAX_GEM_SLOTS
            equipped = create_combatant_gems(template, gems)
            assert [state.gem.id for state in equipped.equipped_gems] == template.gem_ids

    def test_create_combatant_merges_weapon(self):
        templates = load_combatant_templates()

        knight = create_combatant(templates["knight"])
        assert knight.stats.atk == 150
        assert knight.current_hp == knight.max_hp == 1200
        assert knight.effective_range == 1

        ranger = create_combatant(templates["ranger"])
        assert ranger.effective_range == 3
        assert ranger.stats.crit_chance == 25

    def test_zero_range_weapon_is_melee(self):
        berserker = create_combatant(load_combatant_templates()["berserker"])
        assert berserker.effective_range == 1
        assert berserker.stats.lifesteal == 20


class TestTemplateErrors:
    """Test loader error reporting."""

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="not found"):
            load_gem_templates(str(tmp_path / "missing.yaml"))

    def test_missing_top_level_key(self, tmp_path):
        path = tmp_path / "gems.yaml"
        path.write_text("gems: {}\n", encoding="utf-8")
        with pytest.raises(KeyError):
            load_gem_templates(str(path))

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "combatants.yaml"
        path.write_text("- knight\n- ranger\n", encoding="utf-8")
        with pytest.raises(ValueError, match="expected a mapping"):
            load_combatant_templates(str(path))

    def test_unknown_skill_type(self, tmp_path):
        path = tmp_path / "gems.yaml"
        path.write_text(
            "gem_templates:\n"
            "  odd:\n"
            "    name: Odd\n"
            "    skillType: teleport\n",
            encoding="utf-8",
        )
        with pytest.raises(ValueError, match="teleport"):
            load_gem_templates(str(path))

    def test_combatant_missing_name(self, tmp_path):
        path = tmp_path / "combatants.yaml"
        path.write_text("combatant_templates:\n  ghost:\n    maxHp: 10\n", encoding="utf-8")
        with pytest.raises(KeyError):
            load_combatant_templates(str(path))

    def test_unknown_gem_reference(self, tmp_path):
        path = tmp_path / "combatants.yaml"
        path.write_text(
            "combatant_templates:\n"
            "  rookie:\n"
            "    name: Rookie\n"
            "    maxHp: 500\n"
            "    gems: [missing_gem]\n",
            encoding="utf-8",
        )
        template = load_combatant_templates(str(path))["rookie"]
        with pytest.raises(KeyError, match="missing_gem"):
            create_combatant_gems(template, load_gem_templates())
