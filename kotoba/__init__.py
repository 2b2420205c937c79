"""
Kotoba - Japanese vocabulary progression engine.

Tracks a learner through a ten-level vocabulary curriculum:
- Per-word recall strength with spaced-repetition scheduling
- Level mastery aggregation and requirement checking
- Level unlocking and advancement
"""

__version__ = "0.1.0"
