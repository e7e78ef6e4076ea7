"""
LLM prompts for Smart CRM.
"""

from .match_analysis import (
    MATCH_ANALYSIS_SYSTEM_PROMPT,
    build_match_analysis_prompt,
)

__all__ = [
    'MATCH_ANALYSIS_SYSTEM_PROMPT',
    'build_match_analysis_prompt',
]
