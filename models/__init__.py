"""Data models for Promptly.

Updates: v0.2.0 - 2026-10-06 - Export PromptDraft and tag helpers.
Updates: v0.1.0 - 2026-09-21 - Export Identity and PromptRecord dataclasses.
"""

from .identity_model import Identity
from .prompt_model import PromptDraft, PromptRecord
from .tag_model import MAX_TAG_LENGTH, normalize_tag, normalize_tags

__all__ = [
    "Identity",
    "MAX_TAG_LENGTH",
    "PromptDraft",
    "PromptRecord",
    "normalize_tag",
    "normalize_tags",
]
