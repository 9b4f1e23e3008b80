"""
panelpress: job polling and entry autosave core for a comic journaling client.

Drives long-running generation jobs (storyboard drafting, then panel
rendering) through a cancellable polling state machine, and keeps the entry
being edited consistent with debounced autosave, flush-before-switch, and
optimistic list updates.
"""

__all__ = [
    "Config",
    "get_config",
    "NEW_ENTRY",
    "__version__",
    # Jobs (lazy-imported via __getattr__)
    "JobStatusClient",
    "PollingController",
    "reduce_stage",
    # Entries (lazy-imported via __getattr__)
    "EditorSession",
    "EntryAutosaveScheduler",
    "EntrySwitchCoordinator",
    "OptimisticListMutator",
]

__version__ = "0.1.0"

from typing import Any

from panelpress.config import Config, NEW_ENTRY, get_config


def __getattr__(name: str) -> Any:  # lazy attribute access so the CLI does not import Qt for `--version`
    if name == "JobStatusClient":
        from panelpress.jobs.client import JobStatusClient as _JSC

        return _JSC
    if name == "PollingController":
        from panelpress.jobs.polling import PollingController as _PC

        return _PC
    if name == "reduce_stage":
        from panelpress.jobs.reducer import reduce_stage as _rs

        return _rs
    if name == "EditorSession":
        from panelpress.entries.editor import EditorSession as _ES

        return _ES
    if name == "EntryAutosaveScheduler":
        from panelpress.entries.autosave import EntryAutosaveScheduler as _EAS

        return _EAS
    if name == "EntrySwitchCoordinator":
        from panelpress.entries.switch import EntrySwitchCoordinator as _ESC

        return _ESC
    if name == "OptimisticListMutator":
        from panelpress.entries.optimistic import OptimisticListMutator as _OLM

        return _OLM
    raise AttributeError(f"module 'panelpress' has no attribute {name!r}")
