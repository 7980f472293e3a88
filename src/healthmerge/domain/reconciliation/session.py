"""Merge session: one search-then-merge-then-confirm interaction.

State machine::

    idle -> searching -> not_found
                      -> single_match -> proposed -> confirmed
                      -> multiple_matches_merging -> proposed
    (searching, merging) -> failed -> (retry) -> idle

Merge errors end in ``failed``; any other error also ends there and is re-raised.

A proposal is never persisted until ``confirm`` is called. Starting a new
search from ``proposed``/``confirmed``/``not_found`` discards everything the
previous search produced. A session is owned by exactly one interaction.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, replace
from logging import getLogger
from typing import TYPE_CHECKING

from healthmerge.domain.errors import InvalidSessionTransition, MergeError
from healthmerge.domain.model import SessionState

from .collect import collect_candidates, normalize_nik
from .conflicts import detect_conflicts

if TYPE_CHECKING:
    from collections.abc import Iterable

    from healthmerge.domain.model import (
        CandidateSet,
        DatasetCatalog,
        FieldConflictReport,
        MergedRecord,
    )
    from healthmerge.domain.ports import IdentityIndex, MergeUnitOfWork

    from .engine import ReconciliationEngine

log = getLogger(__name__)

_SEARCHABLE_STATES = frozenset(
    {
        SessionState.IDLE,
        SessionState.NOT_FOUND,
        SessionState.PROPOSED,
        SessionState.CONFIRMED,
    }
)
_BUSY_STATES = frozenset(
    {
        SessionState.SEARCHING,
        SessionState.SINGLE_MATCH,
        SessionState.MULTIPLE_MATCHES_MERGING,
    }
)


@dataclass(frozen=True, slots=True)
class SessionSnapshot:
    """Immutable view of a session at one point of its life."""

    state: SessionState
    nik: str | None = None
    dataset_ids: tuple[str, ...] = ()
    candidates: CandidateSet | None = None
    report: FieldConflictReport | None = None
    proposal: MergedRecord | None = None
    error: Exception | None = None


type TransitionObserver = Callable[[SessionSnapshot], None]
type MergeUnitOfWorkFactory = Callable[[], MergeUnitOfWork]

_IDLE = SessionSnapshot(state=SessionState.IDLE)


class MergeSession:
    def __init__(
        self,
        *,
        index: IdentityIndex,
        catalog: DatasetCatalog,
        engine: ReconciliationEngine,
        unit_of_work_factory: MergeUnitOfWorkFactory | None = None,
        on_transition: TransitionObserver | None = None,
    ) -> None:
        self._index = index
        self._catalog = catalog
        self._engine = engine
        self._unit_of_work_factory = unit_of_work_factory
        self._on_transition = on_transition
        self._snapshot = _IDLE

    @property
    def snapshot(self) -> SessionSnapshot:
        return self._snapshot

    @property
    def state(self) -> SessionState:
        return self._snapshot.state

    @property
    def proposal(self) -> MergedRecord | None:
        return self._snapshot.proposal

    async def search(self, nik: str, dataset_ids: Iterable[str]) -> SessionSnapshot:
        """Collect candidates for ``nik`` and propose a merged record."""

        if self.state not in _SEARCHABLE_STATES:
            raise InvalidSessionTransition("search", self.state.value)

        selection = tuple(sorted(set(dataset_ids)))
        self._transition(
            SessionSnapshot(
                state=SessionState.SEARCHING,
                nik=nik.strip() if nik else nik,
                dataset_ids=selection,
            )
        )
        try:
            await self._run_search(nik, selection)
        except asyncio.CancelledError:
            log.debug("Search for NIK %s cancelled; session reset", self._snapshot.nik)
            self._transition(_IDLE)
            raise
        except MergeError as exc:
            log.warning("Merge session for NIK %s failed: %s", self._snapshot.nik, exc)
            self._transition(replace(self._snapshot, state=SessionState.FAILED, error=exc))
        except Exception as exc:
            log.exception("Merge session for NIK %s failed unexpectedly", self._snapshot.nik)
            self._transition(replace(self._snapshot, state=SessionState.FAILED, error=exc))
            raise
        return self._snapshot

    async def _run_search(self, nik: str, selection: tuple[str, ...]) -> None:
        query = normalize_nik(nik)
        candidate_set = await collect_candidates(
            query,
            selection,
            index=self._index,
            catalog=self._catalog,
        )
        if not candidate_set.candidates:
            self._transition(replace(self._snapshot, state=SessionState.NOT_FOUND))
            return

        report = detect_conflicts(candidate_set)
        state = (
            SessionState.SINGLE_MATCH
            if len(candidate_set) == 1
            else SessionState.MULTIPLE_MATCHES_MERGING
        )
        self._transition(
            replace(self._snapshot, state=state, candidates=candidate_set, report=report)
        )

        proposal = await self._engine.reconcile(candidate_set, report=report)
        self._transition(replace(self._snapshot, state=SessionState.PROPOSED, proposal=proposal))

    def confirm(self) -> MergedRecord:
        """Persist the proposed record and finish the session."""

        proposal = self._snapshot.proposal
        if self.state is not SessionState.PROPOSED or proposal is None:
            raise InvalidSessionTransition("confirm", self.state.value)

        if self._unit_of_work_factory is not None:
            with self._unit_of_work_factory() as uow:
                uow.repositories.merged_records.add(proposal)
                uow.commit()

        self._transition(replace(self._snapshot, state=SessionState.CONFIRMED))
        log.info(
            "Confirmed merged record %s for NIK %s (source=%s, confidence=%.2f)",
            proposal.id,
            proposal.nik,
            proposal.source,
            proposal.confidence_score,
        )
        return proposal

    def retry(self) -> SessionSnapshot:
        """Leave the failed state so that a new search can start."""

        if self.state is not SessionState.FAILED:
            raise InvalidSessionTransition("retry", self.state.value)
        self._transition(_IDLE)
        return self._snapshot

    def reset(self) -> SessionSnapshot:
        """Abandon whatever the session holds and return to idle."""

        if self.state in _BUSY_STATES:
            raise InvalidSessionTransition("reset", self.state.value)
        self._transition(_IDLE)
        return self._snapshot

    def _transition(self, snapshot: SessionSnapshot) -> None:
        log.debug("Merge session %s -> %s", self._snapshot.state, snapshot.state)
        self._snapshot = snapshot
        if self._on_transition is not None:
            self._on_transition(snapshot)
