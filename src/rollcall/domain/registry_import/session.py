"""Two-phase import session: stage a reviewable plan, then commit or cancel it.

``ImportSession.stage`` is the only way to obtain a ``StagedImport`` and only a
``StagedImport`` can be committed, so every commit goes through a plan that was
produced (and could be shown) first.
"""

from __future__ import annotations

from dataclasses import replace
from logging import getLogger
from typing import TYPE_CHECKING

from rollcall.config.importing import DEFAULT_IMPORT_BATCH_SIZE

from .audit import record_import_audit
from .commit import CommitOptions, commit_plan
from .errors import InvalidSessionStateError, ParseError
from .planner import plan_import
from .snapshot import RegistryScope, RegistrySnapshot
from .state import SessionState, can_transition

if TYPE_CHECKING:
    from rollcall.domain.model import FileFormat
    from rollcall.domain.ports import RegistryFileParser

    from .commit import ImportResult, ProgressCallback, UnitOfWorkFactory
    from .plan import ImportFlags, ImportPlan
    from .records import Actor, ImportContext

log = getLogger(__name__)


class ImportSession:
    """One file, one plan, one commit sequence."""

    def __init__(
        self,
        *,
        parser: RegistryFileParser,
        unit_of_work_factory: UnitOfWorkFactory,
        context: ImportContext,
        actor: Actor,
    ) -> None:
        self.parser = parser
        self.unit_of_work_factory = unit_of_work_factory
        self.context = context
        self.actor = actor
        self._state = SessionState.IDLE

    @property
    def state(self) -> SessionState:
        return self._state

    def transition(self, target: SessionState) -> None:
        if not can_transition(self._state, target):
            raise InvalidSessionStateError(
                f"Cannot move import session from {self._state} to {target}"
            )
        log.debug("Import session %s -> %s", self._state, target)
        self._state = target

    def stage(
        self,
        data: bytes,
        file_format: FileFormat,
        *,
        flags: ImportFlags | None = None,
    ) -> StagedImport:
        """Parse ``data`` and classify its rows; nothing is written."""

        if self._state is not SessionState.IDLE:
            raise InvalidSessionStateError(f"Session already {self._state}; start a new one")
        try:
            rows = self.parser.read(data, file_format)
            if len(rows) < 2:
                raise ParseError("File has no data rows")
            self.transition(SessionState.PARSED)

            column_map = self.parser.resolve(rows[0])
            self.transition(SessionState.RESOLVED)

            normalized = self.parser.normalize(rows[1:], column_map, self.context)
            snapshot = self._capture_snapshot()
            plan = plan_import(normalized, snapshot, context=self.context, flags=flags)
        except Exception:
            self.transition(SessionState.FAILED)
            raise

        self.transition(SessionState.STAGED)
        return StagedImport(self, plan)

    def _capture_snapshot(self) -> RegistrySnapshot:
        scope = RegistryScope(institution=self.context.institution)
        with self.unit_of_work_factory() as uow:
            entries = uow.repositories.students.find_existing(scope)
        snapshot = RegistrySnapshot.capture(scope, entries)
        log.info(
            "Captured registry snapshot of %s records for %s", len(snapshot), scope.institution
        )
        return snapshot


class StagedImport:
    """A plan awaiting the operator's decision."""

    def __init__(self, session: ImportSession, plan: ImportPlan) -> None:
        self._session = session
        self.plan = plan

    @property
    def state(self) -> SessionState:
        return self._session.state

    def cancel(self) -> None:
        self._session.transition(SessionState.CANCELLED)
        log.info("Registry import cancelled before commit: %s", self.plan.summary())

    def commit(
        self,
        *,
        options: CommitOptions | None = None,
        on_progress: ProgressCallback | None = None,
        batch_size: int = DEFAULT_IMPORT_BATCH_SIZE,
    ) -> ImportResult:
        """Write the staged plan and attempt the audit entry.

        Write failures end the session ``PARTIALLY_COMPLETED`` and come back in
        the result; a stale snapshot raises before anything is written.
        """

        session = self._session
        session.transition(SessionState.COMMITTING)
        try:
            result = commit_plan(
                self.plan,
                unit_of_work_factory=session.unit_of_work_factory,
                actor=session.actor,
                batch_size=batch_size,
                options=options,
                on_progress=on_progress,
            )
        except Exception:
            session.transition(SessionState.FAILED)
            raise

        audit_recorded = record_import_audit(
            session.unit_of_work_factory,
            actor=session.actor,
            result=result,
            context=session.context,
        )
        result = replace(result, audit_recorded=audit_recorded)
        session.transition(result.state)
        log.info("Registry import finished (%s): %s", result.state, result.message())
        return result
