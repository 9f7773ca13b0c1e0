"""Static data for the resume pipeline."""

from .skills import SKILL_KEYWORDS, find_skills

__all__ = [
    'SKILL_KEYWORDS',
    'find_skills'
]
