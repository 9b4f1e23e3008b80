from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Mapping, Optional

from panelpress.jobs.stage import Stage, is_terminal, parse_stage, stage_to_payload


class PollState(str, Enum):
    IDLE = "IDLE"
    POLLING = "POLLING"
    TERMINAL = "TERMINAL"
    CANCELLED = "CANCELLED"
    ERROR = "ERROR"

    @property
    def stopped(self) -> bool:
        return self in (PollState.TERMINAL, PollState.CANCELLED, PollState.ERROR)


@dataclass(frozen=True)
class JobSpec:
    subject_id: str
    style: str


@dataclass(frozen=True)
class JobSnapshot:
    job_id: str
    subject_id: str
    style: str
    stage: Stage
    updated_at: str = ""
    result_ref: Optional[str] = None
    storyboard_text: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "JobSnapshot":
        """Parse a backend status payload.

        The stage may be nested (``{"stage": {"stage": "queued"}}``) or given
        as a bare tag string. Raises ``ValueError`` on malformed payloads.
        """

        if not isinstance(payload, Mapping):
            raise ValueError("Job status payload must be a mapping.")
        job_id = payload.get("job_id")
        if not job_id:
            raise ValueError("Job status payload is missing 'job_id'.")
        raw_stage = payload.get("stage")
        if isinstance(raw_stage, str):
            raw_stage = {"stage": raw_stage}
        stage = parse_stage(raw_stage)  # type: ignore[arg-type]
        result_ref = payload.get("result_ref", payload.get("result_image_path"))
        return cls(
            job_id=str(job_id),
            subject_id=str(payload.get("subject_id", payload.get("entry_id", "")) or ""),
            style=str(payload.get("style", "") or ""),
            stage=stage,
            updated_at=str(payload.get("updated_at", "") or ""),
            result_ref=str(result_ref) if result_ref else None,
            storyboard_text=payload.get("storyboard_text") or None,
        )

    def to_payload(self) -> dict[str, Any]:
        return {
            "job_id": self.job_id,
            "subject_id": self.subject_id,
            "style": self.style,
            "stage": stage_to_payload(self.stage),
            "updated_at": self.updated_at,
            "result_ref": self.result_ref,
            "storyboard_text": self.storyboard_text,
        }

    @property
    def terminal(self) -> bool:
        return is_terminal(self.stage)


def _parse_timestamp(value: str) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


@dataclass
class ObservedJob:
    """Local record of one job as seen through polling.

    ``accept`` is the stale-response guard: once a terminal stage has been
    recorded, or when a snapshot is older than the last recorded one, the
    update is rejected.
    """

    job_id: str
    spec: JobSpec
    snapshot: Optional[JobSnapshot] = None
    rejected: int = field(default=0)

    def accept(self, snapshot: JobSnapshot) -> bool:
        if snapshot.job_id != self.job_id:
            self.rejected += 1
            return False
        current = self.snapshot
        if current is not None:
            if current.terminal:
                self.rejected += 1
                return False
            before = _parse_timestamp(current.updated_at)
            after = _parse_timestamp(snapshot.updated_at)
            if before is not None and after is not None:
                try:
                    older = after < before
                except TypeError:
                    # naive vs aware timestamps are not comparable
                    older = False
                if older:
                    self.rejected += 1
                    return False
        self.snapshot = snapshot
        return True

    @property
    def terminal(self) -> bool:
        return self.snapshot is not None and self.snapshot.terminal
