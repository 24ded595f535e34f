"""
Challenge configuration catalogue.
Focus areas, challenge types, difficulty levels, format types and trait
mappings loaded by ``app/scripts/seed_challenge_config.py``.
"""

from app.models.challenge import ChallengeType, DifficultyLevelConfig, FocusArea, FormatType

# Focus Areas
FOCUS_AREAS = [
    FocusArea(
        code="Prompt_Engineering",
        name="Prompt Engineering",
        description="Designing prompts that steer language models toward reliable output."
    ),
    FocusArea(
        code="Implementation",
        name="Implementation",
        description="Turning AI feature designs into working, tested code."
    ),
    FocusArea(
        code="Debugging",
        name="Debugging",
        description="Diagnosing and fixing failures in LLM-backed systems."
    ),
    FocusArea(
        code="Problem_Solving",
        name="Problem Solving",
        description="Breaking open-ended problems into tractable steps."
    ),
    FocusArea(
        code="Analysis",
        name="Analysis",
        description="Evaluating model behaviour, data and results with evidence."
    ),
    FocusArea(
        code="Systems_Design",
        name="Systems Design",
        description="Architecting services that combine models, data and users."
    ),
    FocusArea(
        code="LLM_Knowledge",
        name="LLM Knowledge",
        description="How language models work, where they fail and why."
    ),
    FocusArea(
        code="AI_Ethics",
        name="AI Ethics",
        description="Applying ethical principles to AI development and use."
    ),
    FocusArea(
        code="RAG",
        name="Retrieval-Augmented Generation",
        description="Grounding model output in retrieved documents."
    ),
    FocusArea(
        code="Fine_Tuning",
        name="Fine Tuning",
        description="Adapting models to a domain with additional training."
    ),
    FocusArea(
        code="Optimization",
        name="Optimization",
        description="Reducing latency and cost of AI applications."
    ),
    FocusArea(
        code="Critical_Thinking",
        name="Critical Thinking",
        description="Analyzing information objectively and making reasoned judgments."
    ),
]

# Challenge Types
CHALLENGE_TYPES = [
    ChallengeType(
        code="implementation",
        name="Implementation",
        description="Build a working feature from a specification.",
        default_format_type_code="code",
        related_types=["debugging", "optimization"],
        leveraged_traits=["practical", "methodical", "persistent"],
        focus_areas=["Implementation", "Prompt_Engineering", "RAG"]
    ),
    ChallengeType(
        code="debugging",
        name="Debugging",
        description="Find and fix the defect in a broken integration.",
        default_format_type_code="debug",
        related_types=["implementation", "analysis"],
        leveraged_traits=["analytical", "detail-oriented", "persistent"],
        focus_areas=["Debugging", "Implementation", "LLM_Knowledge"]
    ),
    ChallengeType(
        code="design",
        name="Design",
        description="Design a system or interface and justify the trade-offs.",
        default_format_type_code="design",
        related_types=["analysis", "implementation"],
        leveraged_traits=["creative", "forward-thinking", "curious"],
        focus_areas=["Systems_Design", "RAG", "AI_Ethics"]
    ),
    ChallengeType(
        code="analysis",
        name="Analysis",
        description="Evaluate a scenario, output or dataset and draw conclusions.",
        default_format_type_code="scenario-analysis",
        related_types=["critical-analysis", "design"],
        leveraged_traits=["analytical", "skeptical", "reflective"],
        focus_areas=["Analysis", "LLM_Knowledge", "Critical_Thinking"]
    ),
    ChallengeType(
        code="optimization",
        name="Optimization",
        description="Make an existing pipeline faster or cheaper without losing quality.",
        default_format_type_code="refactor",
        related_types=["implementation", "debugging"],
        leveraged_traits=["analytical", "pragmatic", "competitive"],
        focus_areas=["Optimization", "Fine_Tuning", "Systems_Design"]
    ),
    ChallengeType(
        code="critical-analysis",
        name="Critical Analysis",
        description="Identify assumptions and evaluate the arguments in a piece of content.",
        default_format_type_code="essay",
        related_types=["analysis", "ethical-reasoning"],
        leveraged_traits=["analytical", "detail-oriented", "skeptical"],
        focus_areas=["Critical_Thinking", "Analysis", "Problem_Solving"]
    ),
    ChallengeType(
        code="ethical-reasoning",
        name="Ethical Reasoning",
        description="Apply ethical principles to a complex AI deployment.",
        default_format_type_code="case-study",
        related_types=["critical-analysis", "design"],
        leveraged_traits=["empathetic", "principled", "reflective"],
        focus_areas=["AI_Ethics", "Critical_Thinking"]
    ),
]

# Difficulty Levels
DIFFICULTY_LEVELS = [
    DifficultyLevelConfig(
        code="beginner",
        name="Beginner",
        description="Entry-level challenges requiring basic knowledge and skills.",
        sort_order=1
    ),
    DifficultyLevelConfig(
        code="intermediate",
        name="Intermediate",
        description="Mid-level challenges requiring moderate knowledge and skills.",
        sort_order=2
    ),
    DifficultyLevelConfig(
        code="advanced",
        name="Advanced",
        description="Higher-level challenges requiring significant knowledge and skills.",
        sort_order=3
    ),
    DifficultyLevelConfig(
        code="expert",
        name="Expert",
        description="Expert-level challenges requiring deep knowledge and original thinking.",
        sort_order=4
    ),
]

# Format Types
FORMAT_TYPES = [
    FormatType(code="code", name="Code", description="Write or complete a program."),
    FormatType(code="debug", name="Debug", description="Fix a provided program that misbehaves."),
    FormatType(code="refactor", name="Refactor", description="Improve a provided program without changing behaviour."),
    FormatType(code="design", name="Design", description="Produce a structured design with justification."),
    FormatType(code="essay", name="Essay", description="A structured written argument."),
    FormatType(code="scenario-analysis", name="Scenario Analysis", description="Analyze a scenario with several competing factors."),
    FormatType(code="case-study", name="Case Study", description="Extract principles from a concrete example."),
    FormatType(code="prompt-engineering", name="Prompt Engineering", description="Write a prompt and explain its design."),
]

# Trait -> focus area codes
TRAIT_MAPPINGS = {
    "analytical": ["Analysis", "Debugging", "Critical_Thinking"],
    "creative": ["Systems_Design", "Prompt_Engineering"],
    "practical": ["Implementation", "Optimization"],
    "curious": ["LLM_Knowledge", "RAG"],
    "empathetic": ["AI_Ethics"],
    "principled": ["AI_Ethics", "Critical_Thinking"],
    "methodical": ["Implementation", "Fine_Tuning"],
}


def get_trait_mapping_documents() -> list:
    """Trait mappings in the document shape stored in ``trait_mappings``."""
    return [
        {"trait": trait, "focus_areas": focus_areas}
        for trait, focus_areas in TRAIT_MAPPINGS.items()
    ]
