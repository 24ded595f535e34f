"""
Skill normalization and focus-area mapping utilities.

Progress records skills under free-form keys ("prompting", "systemsDesign",
"llm_knowledge"). This module maps them onto focus-area codes and derives
strengths/weaknesses from the numeric skill levels.
"""

from typing import Any, Dict, List, Tuple
import math
import re


# Focus area code -> skill aliases (lowercase, underscore separated).
# Lookup order matters for partial matches: earlier aliases win.
FOCUS_AREA_TAXONOMY: Dict[str, List[str]] = {
    "Prompt_Engineering": ["prompt_engineering", "prompt", "prompting"],
    "Implementation": ["coding", "implementation"],
    "Debugging": ["debugging"],
    "Problem_Solving": ["problem_solving"],
    "Analysis": ["analysis"],
    "Systems_Design": ["systems_design", "design"],
    "LLM_Knowledge": ["llm", "llm_knowledge"],
    "AI_Ethics": ["ai_ethics", "ethics"],
    "RAG": ["rag", "retrieval"],
    "Fine_Tuning": ["fine_tuning"],
    "Optimization": ["optimization"],
    "Critical_Thinking": ["critical_thinking", "reasoning"],
}

STRENGTH_THRESHOLD = 75.0
WEAKNESS_THRESHOLD = 60.0
MAX_DERIVED_SKILLS = 3


def _alias_index() -> List[Tuple[str, str]]:
    return [
        (alias, focus_area)
        for focus_area, aliases in FOCUS_AREA_TAXONOMY.items()
        for alias in aliases
    ]


def normalize_skill(skill_name: str) -> str:
    """
    Normalize a skill key for lookup.

    Examples:
        >>> normalize_skill("Prompt Engineering")
        'prompt_engineering'
        >>> normalize_skill("fine-tuning")
        'fine_tuning'
    """
    if not skill_name:
        return ""
    normalized = str(skill_name).strip().lower()
    normalized = re.sub(r"[\s\-]+", "_", normalized)
    return normalized.strip("_")


def map_skill_to_focus_area(skill: str) -> str:
    """
    Map one skill to a focus area code.

    Exact alias match first, then the first alias that contains the skill or
    is contained in it. Unmatched skills are returned unchanged.

    Examples:
        >>> map_skill_to_focus_area("Prompting")
        'Prompt_Engineering'
        >>> map_skill_to_focus_area("advanced_debugging")
        'Debugging'
        >>> map_skill_to_focus_area("quantum")
        'quantum'
    """
    normalized = normalize_skill(skill)
    if not normalized:
        return skill

    index = _alias_index()
    for alias, focus_area in index:
        if normalized == alias:
            return focus_area

    for alias, focus_area in index:
        if alias in normalized or normalized in alias:
            return focus_area

    return skill


def map_skills_to_focus_areas(skills: List[str]) -> List[str]:
    """Map each skill to a focus area code, keeping input order."""
    return [
        map_skill_to_focus_area(skill)
        for skill in skills or []
        if isinstance(skill, str) and skill.strip()
    ]


def format_skill_name(key: str) -> str:
    """
    Turn a snake_case or camelCase key into Title Case words.

    Examples:
        >>> format_skill_name("problem_solving")
        'Problem Solving'
        >>> format_skill_name("systemsDesign")
        'Systems Design'
    """
    spaced = str(key).replace("_", " ")
    spaced = re.sub(r"([A-Z])", r" \1", spaced)
    words = spaced.split()
    return " ".join(word[:1].upper() + word[1:].lower() for word in words)


# ============================================================================
# SKILL LEVEL ANALYSIS
# ============================================================================

def numeric_skill_items(skill_levels: Dict[str, Any]) -> List[Tuple[str, float]]:
    """(name, level) pairs for numeric levels only, in original key order."""
    items = []
    for name, value in (skill_levels or {}).items():
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            continue
        if math.isnan(value):
            continue
        items.append((name, float(value)))
    return items


def weakest_skills(skill_levels: Dict[str, Any], count: int = 2) -> List[str]:
    """
    Names of the ``count`` lowest numeric skills.

    The sort is stable, so equal levels keep their original key order.
    """
    ordered = sorted(numeric_skill_items(skill_levels), key=lambda item: item[1])
    return [name for name, _ in ordered[:count]]


def derive_strengths(skill_levels: Dict[str, Any]) -> List[str]:
    """Skills at or above 75, highest first, formatted for display."""
    strong = [item for item in numeric_skill_items(skill_levels) if item[1] >= STRENGTH_THRESHOLD]
    strong.sort(key=lambda item: item[1], reverse=True)
    return [format_skill_name(name) for name, _ in strong[:MAX_DERIVED_SKILLS]]


def derive_weaknesses(skill_levels: Dict[str, Any]) -> List[str]:
    """Skills below 60, lowest first, formatted for display."""
    weak = [item for item in numeric_skill_items(skill_levels) if item[1] < WEAKNESS_THRESHOLD]
    weak.sort(key=lambda item: item[1])
    return [format_skill_name(name) for name, _ in weak[:MAX_DERIVED_SKILLS]]
