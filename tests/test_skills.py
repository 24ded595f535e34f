"""
Skill normalization and focus-area mapping tests.
"""
import pytest

from app.utils.skills import (
    derive_strengths,
    derive_weaknesses,
    format_skill_name,
    map_skill_to_focus_area,
    map_skills_to_focus_areas,
    normalize_skill,
    numeric_skill_items,
    weakest_skills,
)


class TestNormalization:

    @pytest.mark.parametrize("raw,expected", [
        ("Prompt Engineering", "prompt_engineering"),
        ("fine-tuning", "fine_tuning"),
        ("  RAG ", "rag"),
        ("", ""),
    ])
    def test_normalize_skill(self, raw, expected):
        assert normalize_skill(raw) == expected

    @pytest.mark.parametrize("key,expected", [
        ("problem_solving", "Problem Solving"),
        ("systemsDesign", "Systems Design"),
        ("rag", "Rag"),
    ])
    def test_format_skill_name(self, key, expected):
        assert format_skill_name(key) == expected


class TestFocusAreaMapping:

    @pytest.mark.parametrize("skill,expected", [
        ("Prompting", "Prompt_Engineering"),
        ("ethics", "AI_Ethics"),
        ("Retrieval", "RAG"),
        ("reasoning", "Critical_Thinking"),
        ("llm_knowledge", "LLM_Knowledge"),
    ])
    def test_exact_alias_match(self, skill, expected):
        assert map_skill_to_focus_area(skill) == expected

    def test_partial_match(self):
        assert map_skill_to_focus_area("advanced_debugging") == "Debugging"

    def test_unknown_skill_is_returned_unchanged(self):
        assert map_skill_to_focus_area("quantum") == "quantum"

    def test_list_mapping_skips_blank_entries(self):
        assert map_skills_to_focus_areas(["coding", "", "  ", "rag"]) == ["Implementation", "RAG"]


class TestSkillLevels:

    def test_non_numeric_levels_are_ignored(self):
        items = numeric_skill_items({"a": 50, "b": "high", "c": None, "d": True, "e": 12.5})

        assert items == [("a", 50.0), ("e", 12.5)]

    def test_weakest_skills_keep_key_order_on_ties(self):
        levels = {"a": 50, "b": 30, "c": "n/a", "d": 30}

        assert weakest_skills(levels, 2) == ["b", "d"]

    def test_derive_strengths(self):
        levels = {"rag": 80, "prompting": 95, "coding": 75, "analysis": 74, "ethics": 99}

        assert derive_strengths(levels) == ["Ethics", "Prompting", "Rag"]

    def test_derive_weaknesses(self):
        levels = {"fine_tuning": 10, "rag": 59, "coding": 60}

        assert derive_weaknesses(levels) == ["Fine Tuning", "Rag"]

    def test_empty_levels(self):
        assert weakest_skills({}) == []
        assert derive_strengths({}) == []
        assert derive_weaknesses(None) == []
