from __future__ import annotations

from collections.abc import Iterable

from tactics_coach.config import get_settings


class IrrelevantThemeClassifier:
    """
    Flags themes that describe a puzzle's length, game phase or evaluation
    rather than a tactical motif. Those are excluded from theme summaries.
    """

    def __init__(self, themes: Iterable[str] | None = None):
        self.themes = frozenset(get_settings().irrelevant_themes if themes is None else themes)

    def __call__(self, theme: str) -> bool:
        return theme in self.themes
