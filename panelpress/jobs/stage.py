"""Closed tagged union of generation job stages.

Each stage is a frozen dataclass; ``Stage`` is the union of all of them, so
``assert_never`` in stage handlers lets a type checker prove every variant is
covered. The wire form is a flat mapping tagged by ``"stage"``:

```python
{"stage": "rendering", "completed": 1, "total": 4}
{"stage": "failed", "error": "quota exceeded"}
```
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Mapping, Union


@dataclass(frozen=True)
class Queued:
    name: ClassVar[str] = "queued"


@dataclass(frozen=True)
class Parsing:
    name: ClassVar[str] = "parsing"


@dataclass(frozen=True)
class Drafting:
    name: ClassVar[str] = "drafting"


@dataclass(frozen=True)
class Composing:
    name: ClassVar[str] = "composing"


@dataclass(frozen=True)
class Rendering:
    completed: int
    total: int

    name: ClassVar[str] = "rendering"

    def __post_init__(self) -> None:
        if self.completed < 0 or self.total < 0:
            raise ValueError("Rendering counts must be non-negative.")
        if self.completed > self.total:
            raise ValueError(f"Rendering completed ({self.completed}) exceeds total ({self.total}).")


@dataclass(frozen=True)
class Saving:
    name: ClassVar[str] = "saving"


@dataclass(frozen=True)
class Done:
    name: ClassVar[str] = "done"


@dataclass(frozen=True)
class Failed:
    error: str

    name: ClassVar[str] = "failed"


Stage = Union[Queued, Parsing, Drafting, Composing, Rendering, Saving, Done, Failed]

_SIMPLE_STAGES: dict[str, Stage] = {
    "queued": Queued(),
    "parsing": Parsing(),
    "drafting": Drafting(),
    "composing": Composing(),
    "saving": Saving(),
    "done": Done(),
}

STAGE_NAMES: tuple[str, ...] = ("queued", "parsing", "drafting", "composing", "rendering", "saving", "done", "failed")


def is_terminal(stage: Stage) -> bool:
    """Return True for ``done`` and ``failed``."""

    return isinstance(stage, (Done, Failed))


def _coerce_count(payload: Mapping[str, Any], key: str) -> int:
    raw = payload.get(key)
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        raise ValueError(f"Rendering stage requires a numeric {key!r}.")
    if isinstance(raw, float) and not raw.is_integer():
        raise ValueError(f"Rendering {key!r} must be a whole number.")
    return int(raw)


def parse_stage(payload: Mapping[str, Any]) -> Stage:
    """Build a ``Stage`` from its tagged wire form.

    Raises
    ------
    ValueError
        If the tag is missing or unknown, or the payload is malformed.
    """

    if not isinstance(payload, Mapping):
        raise ValueError("Stage payload must be a mapping.")
    tag = payload.get("stage")
    if not isinstance(tag, str):
        raise ValueError("Stage payload is missing the 'stage' tag.")
    tag = tag.strip().lower()
    if tag in _SIMPLE_STAGES:
        return _SIMPLE_STAGES[tag]
    if tag == "rendering":
        return Rendering(completed=_coerce_count(payload, "completed"), total=_coerce_count(payload, "total"))
    if tag == "failed":
        error = payload.get("error")
        return Failed(error=str(error) if error is not None else "unknown error")
    raise ValueError(f"Unknown stage: {tag!r}")


def stage_to_payload(stage: Stage) -> dict[str, Any]:
    """Return the tagged wire form of ``stage``."""

    if isinstance(stage, Rendering):
        return {"stage": stage.name, "completed": stage.completed, "total": stage.total}
    if isinstance(stage, Failed):
        return {"stage": stage.name, "error": stage.error}
    return {"stage": stage.name}
