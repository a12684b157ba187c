"""
Agents module exports.
"""

from stepwright.agents.action_agent import (
    VisionActionAgent,
    create_action_agent,
    parse_model_json,
)

__all__ = [
    "VisionActionAgent",
    "create_action_agent",
    "parse_model_json",
]
