"""
Utility functions for diconf.

General-purpose helpers that don't belong to a specific pipeline stage.
"""

import diconf.utils.suggestions as suggestions
from diconf.utils.suggestions import get_suggestion, levenshtein

__all__ = ["get_suggestion", "levenshtein", "suggestions"]
