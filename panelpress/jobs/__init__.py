"""Generation jobs: stage union, backend client, reducer, and polling controller."""

from __future__ import annotations

# Qt-free re-exports only; the polling controller lives in panelpress.jobs.polling
from panelpress.jobs.stage import Stage, is_terminal, parse_stage  # noqa: F401
from panelpress.jobs.models import JobSnapshot, PollState  # noqa: F401
from panelpress.jobs.reducer import DisplayState, reduce_stage  # noqa: F401
