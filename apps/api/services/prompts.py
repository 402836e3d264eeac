"""
Prompt construction for full blueprint generation and per-section regeneration.
"""

from dataclasses import dataclass
from typing import Any, Dict

from services.errors import InvalidSection

FULL_SECTION = "full"
REGENERABLE_SECTIONS = ("features", "techStack", "database", "roadmap")
SECTIONS = (FULL_SECTION,) + REGENERABLE_SECTIONS

SYSTEM_ROLE = "You are an expert software architect."
JSON_CONTRACT = (
    "Respond with strict JSON only: no prose, no explanations, "
    "no markdown and no code fences."
)

FEATURES_SHAPE = """{
  "mvp": ["Critical feature 1", "Critical feature 2", "Critical feature 3"],
  "phase2": ["Enhancement 1", "Enhancement 2"],
  "phase3": ["Advanced feature 1", "Advanced feature 2"]
}"""

TECH_STACK_SHAPE = """{
  "frontend": "Technology choice",
  "backend": "Technology choice",
  "database": "Database choice",
  "auth": "Auth solution",
  "hosting": "Hosting platform"
}"""

DATABASE_SHAPE = """{
  "tables": [
    {
      "name": "table_name",
      "fields": ["id", "field1", "field2"],
      "relations": "Description of relationships"
    }
  ]
}"""

ROADMAP_SHAPE = """{
  "month1": ["Week 1: Task", "Week 2: Task", "Week 3: Task", "Week 4: Task"],
  "month2": ["Week 1: Task", "Week 2: Task", "Week 3: Task", "Week 4: Task"],
  "month3": ["Week 1: Task", "Week 2: Task", "Week 3: Task", "Week 4: Task"]
}"""


def _indent(block: str, prefix: str = "  ") -> str:
    lines = block.splitlines()
    return "\n".join([lines[0]] + [prefix + line for line in lines[1:]])


FULL_SHAPE = f"""{{
  "projectName": "Suggested project name",
  "features": {_indent(FEATURES_SHAPE)},
  "techStack": {_indent(TECH_STACK_SHAPE)},
  "database": {_indent(DATABASE_SHAPE)},
  "apiEndpoints": [
    "POST /api/endpoint1 - Description",
    "GET /api/endpoint2 - Description"
  ],
  "roadmap": {_indent(ROADMAP_SHAPE)}
}}"""

SECTION_PROMPTS: Dict[str, Dict[str, str]] = {
    FULL_SECTION: {"label": "complete project blueprint", "shape": FULL_SHAPE},
    "features": {"label": "features roadmap", "shape": FEATURES_SHAPE},
    "techStack": {"label": "tech stack recommendation", "shape": TECH_STACK_SHAPE},
    "database": {"label": "database schema", "shape": DATABASE_SHAPE},
    "roadmap": {"label": "3-month development roadmap", "shape": ROADMAP_SHAPE},
}


@dataclass(frozen=True)
class Prompt:
    system: str
    user: str
    section: str


def parse_section(value: Any, *, allow_full: bool = True) -> str:
    """Return the section selector unchanged or raise InvalidSection."""
    allowed = SECTIONS if allow_full else REGENERABLE_SECTIONS
    if not isinstance(value, str) or value not in allowed:
        raise InvalidSection(value)
    return value


def build_prompt(idea: str, section: str = FULL_SECTION) -> Prompt:
    """
    Build the system and user instructions for one generation call.

    The idea text is interpolated verbatim; the JSON shape that follows it is
    the only structure the model is told to honour.
    """
    section = parse_section(section)
    entry = SECTION_PROMPTS[section]

    if section == FULL_SECTION:
        system = f"{SYSTEM_ROLE} Generate detailed project blueprints in JSON format only. {JSON_CONTRACT}"
        user = (
            f'Generate a complete project blueprint for this idea: "{idea}"\n\n'
            "Return ONLY valid JSON with this exact structure "
            "(no markdown, no explanations):\n"
            f"{entry['shape']}"
        )
    else:
        system = f"{SYSTEM_ROLE} Generate only the requested {section} object in valid JSON format. {JSON_CONTRACT}"
        user = (
            f'Given this project idea: "{idea}"\n\n'
            f"Generate ONLY a {entry['label']} in JSON format:\n"
            f"{entry['shape']}"
        )
    return Prompt(system=system, user=user, section=section)
