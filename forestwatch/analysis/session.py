"""
Analysis session store.

Owns every piece of in-memory dashboard state: the current forest and
waste datasets, the PES program list, restoration projects, partners,
tourism products, and one :class:`OperationState` per analysis
operation.  Other components read from it; only its own coroutines
write to it.

Operation lifecycle
-------------------
    IDLE --run--> PENDING --ok--> SUCCEEDED
                          \\-err--> FAILED

PENDING and FAILED carry the last successful result forward, so a
failed re-run never hides what was already on screen.  Each run takes a
sequence number; when a response arrives for a run that is no longer
the latest of its operation it is dropped.

Usage
-----
    store = AnalysisSessionStore(service, forest_input=seed.threat_sample())
    await store.run_forest_analysis()
    if store.state("forest").status is OperationStatus.FAILED:
        banner.setText(store.state("forest").error)
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    Generic,
    List,
    Optional,
    Sequence,
    Tuple,
    TypeVar,
)

from ..logger import write_analysis_event
from ..models.forest import Alert, ForestDataInput, ForestWatchResponse, GeoPoint
from ..models.knowledge import KnowledgeQueryResult, PlantAnalysisResult
from ..models.programs import (
    GeneratedPesInsights,
    Partner,
    PesProgram,
    RestorationProject,
    TourismProduct,
)
from ..models.waste import CircularEconomyResponse, WasteDataInput
from .errors import AnalysisError

log = logging.getLogger(__name__)

T = TypeVar("T")

FOREST = "forest"
WASTE = "waste"
INCENTIVES = "incentives"
KNOWLEDGE = "knowledge"
PLANT = "plant"
OPERATIONS = (FOREST, WASTE, INCENTIVES, KNOWLEDGE, PLANT)

_INTERRUPTED = "Analysis service error: request interrupted"


class OperationStatus(Enum):
    IDLE = "idle"
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class OperationState(Generic[T]):
    """State of one analysis operation.  ``error`` is set only when FAILED."""
    status: OperationStatus = OperationStatus.IDLE
    result: Optional[T] = None
    error: Optional[str] = None

    @property
    def is_pending(self) -> bool:
        return self.status is OperationStatus.PENDING

    def pending(self) -> "OperationState[T]":
        return OperationState(OperationStatus.PENDING, self.result)

    def succeeded(self, result: T) -> "OperationState[T]":
        return OperationState(OperationStatus.SUCCEEDED, result)

    def failed(self, error: str) -> "OperationState[T]":
        return OperationState(OperationStatus.FAILED, self.result, error)


def _iso(ts: float) -> str:
    return datetime.fromtimestamp(ts, timezone.utc).isoformat()


def stamp_forest_response(response: ForestWatchResponse, now: float) -> ForestWatchResponse:
    """Give each alert an ``{epoch_ms}-{index}`` id and stamp the response."""
    epoch_ms = int(now * 1000)
    alerts = tuple(replace(a, id=f"{epoch_ms}-{i}") for i, a in enumerate(response.alerts))
    return replace(response, alerts=alerts, timestamp=_iso(now))


def merge_programs(
    existing: Sequence[PesProgram],
    suggested: Sequence[PesProgram],
) -> Tuple[PesProgram, ...]:
    """Append suggested programs whose id is new; existing ids are never updated."""
    seen = {p.id for p in existing}
    merged = list(existing)
    for p in suggested:
        if p.id in seen:
            continue
        seen.add(p.id)
        merged.append(p)
    return tuple(merged)


StoreListener = Callable[[str], None]


class AnalysisSessionStore:
    """Single owner of dashboard state; see the module docstring.

    Parameters
    ----------
    service
        Object with the ``AnalysisService`` coroutines.
    selection : MapInteractionController, optional
        Its alert selection is cleared whenever a forest run starts.
    clock
        Wall-clock source (seconds) for alert ids and timestamps.
    event_log_dir
        When set, every finished run is dumped there as JSON.
    """

    def __init__(
        self,
        service: Any,
        forest_input: Optional[ForestDataInput] = None,
        waste_input: Optional[WasteDataInput] = None,
        pes_programs: Sequence[PesProgram] = (),
        restoration_projects: Sequence[RestorationProject] = (),
        partners: Sequence[Partner] = (),
        tourism_products: Sequence[TourismProduct] = (),
        selection: Any = None,
        clock: Callable[[], float] = time.time,
        event_log_dir: Optional[Path] = None,
    ):
        self._service = service
        self.forest_input = forest_input or ForestDataInput()
        self.waste_input = waste_input or WasteDataInput()
        self.pes_programs: Tuple[PesProgram, ...] = tuple(pes_programs)
        self.restoration_projects: Tuple[RestorationProject, ...] = tuple(restoration_projects)
        self.partners: Tuple[Partner, ...] = tuple(partners)
        self.tourism_products: Tuple[TourismProduct, ...] = tuple(tourism_products)
        self._selection = selection
        self._clock = clock
        self._event_log_dir = event_log_dir

        self._states: Dict[str, OperationState] = {op: OperationState() for op in OPERATIONS}
        self._latest_seq: Dict[str, int] = {op: 0 for op in OPERATIONS}
        self._listeners: List[StoreListener] = []

    # ── Observation ──

    def add_listener(self, fn: StoreListener) -> None:
        """``fn(operation)`` is called after any state change ("data" for dataset edits)."""
        self._listeners.append(fn)

    def _notify(self, what: str) -> None:
        for fn in self._listeners:
            fn(what)

    def state(self, operation: str) -> OperationState:
        return self._states[operation]

    def is_pending(self, operation: str) -> bool:
        return self._states[operation].is_pending

    @property
    def forest_result(self) -> Optional[ForestWatchResponse]:
        return self._states[FOREST].result

    @property
    def waste_result(self) -> Optional[CircularEconomyResponse]:
        return self._states[WASTE].result

    @property
    def incentive_insights(self) -> Optional[GeneratedPesInsights]:
        return self._states[INCENTIVES].result

    @property
    def alerts(self) -> Tuple[Alert, ...]:
        result = self.forest_result
        return result.alerts if result is not None else ()

    def find_alert(self, alert_id: str) -> Optional[Alert]:
        return next((a for a in self.alerts if a.id == alert_id), None)

    # ── Dataset edits ──

    def set_forest_input(self, data: ForestDataInput) -> None:
        self.forest_input = data
        self._notify("data")

    def set_waste_input(self, data: WasteDataInput) -> None:
        self.waste_input = data
        self._notify("data")

    # ── Run machinery ──

    async def _run(
        self,
        operation: str,
        call: Callable[[], Awaitable[T]],
        finish: Callable[[T], Any] = lambda r: r,
        commit: Optional[Callable[[Any], None]] = None,
    ) -> OperationState:
        """Drive one operation through PENDING to SUCCEEDED / FAILED.

        ``finish`` turns the raw service result into the stored result;
        ``commit`` applies side effects, and only runs for the latest
        sequence number.
        """
        self._latest_seq[operation] += 1
        seq = self._latest_seq[operation]
        self._states[operation] = self._states[operation].pending()
        self._notify(operation)

        outcome: Optional[OperationState] = None
        value: Any = None
        try:
            value = finish(await call())
            outcome = self._states[operation].succeeded(value)
        except AnalysisError as exc:
            log.warning("%s run #%d failed: %s", operation, seq, exc)
            outcome = self._states[operation].failed(str(exc))
        finally:
            if seq != self._latest_seq[operation]:
                log.info("Discarding stale %s response (#%d, latest #%d)",
                         operation, seq, self._latest_seq[operation])
            else:
                if outcome is None:
                    outcome = self._states[operation].failed(_INTERRUPTED)
                elif commit is not None and outcome.status is OperationStatus.SUCCEEDED:
                    commit(value)
                self._states[operation] = outcome
                self._record(operation, seq, outcome)
                self._notify(operation)
        return self._states[operation]

    def _record(self, operation: str, seq: int, state: OperationState) -> None:
        log.info("%s run #%d -> %s", operation, seq, state.status.value)
        if self._event_log_dir is None:
            return
        event: Dict[str, Any] = {
            "operation": operation,
            "seq": seq,
            "status": state.status.value,
            "timestamp": _iso(self._clock()),
        }
        if state.error:
            event["error"] = state.error
        elif operation == FOREST and state.result is not None:
            event["alerts"] = [a.as_dict() for a in state.result.alerts]
        write_analysis_event(event, self._event_log_dir)

    # ── Operations ──

    async def run_forest_analysis(self, data: Optional[ForestDataInput] = None) -> OperationState:
        """Analyse ``data`` (or the current forest input) and replace the alerts."""
        if data is not None:
            self.forest_input = data
        if self._selection is not None:
            self._selection.select_alert(None)
        snapshot = self.forest_input
        return await self._run(
            FOREST,
            lambda: self._service.analyze_forest(snapshot),
            finish=lambda r: stamp_forest_response(r, self._clock()),
        )

    async def run_waste_analysis(self, data: Optional[WasteDataInput] = None) -> OperationState:
        if data is not None:
            self.waste_input = data
        snapshot = self.waste_input
        return await self._run(
            WASTE,
            lambda: self._service.analyze_waste(snapshot),
            finish=lambda r: replace(r, timestamp=_iso(self._clock())),
        )

    async def run_incentive_analysis(self) -> OperationState:
        """Ask for new PES programs; only ids not already listed are added."""
        args = (
            self.forest_result,
            self.waste_result,
            self.forest_input,
            self.waste_input,
            self.pes_programs,
        )

        def _merge(insights: GeneratedPesInsights) -> None:
            before = len(self.pes_programs)
            self.pes_programs = merge_programs(self.pes_programs, insights.suggested_programs)
            log.info("Incentive suggestions: %d new of %d",
                     len(self.pes_programs) - before, len(insights.suggested_programs))

        return await self._run(
            INCENTIVES,
            lambda: self._service.suggest_incentive_programs(*args),
            commit=_merge,
        )

    async def ask_knowledge(self, question: str) -> OperationState:
        question = question.strip()
        if not question:
            raise ValueError("question is empty")
        return await self._run(KNOWLEDGE, lambda: self._service.query_knowledge(question))

    async def identify_plant(
        self,
        image_bytes: bytes,
        location: Optional[GeoPoint] = None,
    ) -> OperationState:
        if not image_bytes:
            raise ValueError("no image data")
        return await self._run(PLANT, lambda: self._service.identify_plant(image_bytes, location))

    # Typed accessors for the knowledge tools

    @property
    def knowledge_answer(self) -> Optional[KnowledgeQueryResult]:
        return self._states[KNOWLEDGE].result

    @property
    def plant_result(self) -> Optional[PlantAnalysisResult]:
        return self._states[PLANT].result
