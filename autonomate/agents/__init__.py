"""
Decision agents.
"""

from autonomate.agents.oracle import ModelBackedOracle, clean_gherkin_step, extract_json_object
from autonomate.agents.verifier import VerificationEngine

__all__ = [
    "ModelBackedOracle",
    "VerificationEngine",
    "clean_gherkin_step",
    "extract_json_object",
]
