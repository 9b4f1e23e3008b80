"""Pure mapping from a job ``Stage`` to what the progress surface displays.

The fractions for non-rendering stages are cosmetic placeholders; they are
collected in :class:`StageFractions` so callers can tune them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, assert_never

from panelpress.jobs.stage import (
    Composing,
    Done,
    Drafting,
    Failed,
    Parsing,
    Queued,
    Rendering,
    Saving,
    Stage,
)


@dataclass(frozen=True)
class StageFractions:
    """Progress fraction per stage; rendering interpolates within its band."""

    queued: float = 0.08
    parsing: float = 0.16
    drafting: float = 0.28
    composing: float = 0.42
    rendering_start: float = 0.60
    rendering_end: float = 0.90
    saving: float = 0.94
    failed: float = 1.0

    def __post_init__(self) -> None:
        ordered = [
            self.queued,
            self.parsing,
            self.drafting,
            self.composing,
            self.rendering_start,
            self.rendering_end,
            self.saving,
        ]
        if any(b < a for a, b in zip(ordered, ordered[1:])):
            raise ValueError("Stage fractions must be non-decreasing in pipeline order.")
        if not all(0.0 <= v <= 1.0 for v in ordered + [self.failed]):
            raise ValueError("Stage fractions must lie within [0, 1].")


DEFAULT_FRACTIONS = StageFractions()


@dataclass(frozen=True)
class DisplayState:
    fraction: float
    label: str
    is_terminal: bool
    error_message: Optional[str] = None

    @property
    def percent(self) -> int:
        return int(round(self.fraction * 100))


def _rendering_fraction(stage: Rendering, fractions: StageFractions) -> float:
    if stage.total <= 0:
        return fractions.rendering_start
    ratio = min(1.0, stage.completed / stage.total)
    return fractions.rendering_start + (fractions.rendering_end - fractions.rendering_start) * ratio


def reduce_stage(stage: Stage, fractions: StageFractions = DEFAULT_FRACTIONS) -> DisplayState:
    """Map ``stage`` to a :class:`DisplayState`.

    Side-effect free: the same stage always yields an equal result.
    """

    if isinstance(stage, Queued):
        return DisplayState(fractions.queued, "Queued", False)
    if isinstance(stage, Parsing):
        return DisplayState(fractions.parsing, "Parsing entry", False)
    if isinstance(stage, Drafting):
        return DisplayState(fractions.drafting, "Drafting storyboard", False)
    if isinstance(stage, Composing):
        return DisplayState(fractions.composing, "Composing panel prompts", False)
    if isinstance(stage, Rendering):
        return DisplayState(
            _rendering_fraction(stage, fractions),
            f"Rendering panels {stage.completed}/{stage.total}",
            False,
        )
    if isinstance(stage, Saving):
        return DisplayState(fractions.saving, "Saving images", False)
    if isinstance(stage, Done):
        return DisplayState(1.0, "Comic ready", True)
    if isinstance(stage, Failed):
        return DisplayState(fractions.failed, f"Failed: {stage.error}", True, error_message=stage.error)
    assert_never(stage)
