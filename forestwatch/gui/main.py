"""
ForestWatch dashboard main window.

Layout
------
  ┌ scenario ▾  [Live]  [Run forest analysis] ──────────────────────┐
  │ error banner (hidden unless the last run failed)                 │
  ├──────────────────────────────┬───────────────────────────────────┤
  │                              │ detail panel (selection)          │
  │            map               ├───────────────────────────────────┤
  │                              │ Alerts | Waste | Incentives |     │
  │                              │ Restoration | Knowledge           │
  └──────────────────────────────┴───────────────────────────────────┘

Analysis coroutines and dataset edits run on one asyncio loop in a
daemon thread, so only that thread mutates the store.  Store
and selection listeners fire on whichever thread made the change, so
both just queue a slot call onto the GUI thread.  The session's own
index and viewport follow-ups go through a :class:`GuiDispatcher`, so
they also run on the GUI thread.

Usage
-----
    forestwatch-dashboard --scenario imminent-wildfire
    python -m forestwatch.gui.main --location -1.27,36.81 --debug
"""
from __future__ import annotations

import argparse
import asyncio
import collections
import html
import logging
import signal
import sys
import threading
from concurrent.futures import Future
from typing import Any, Callable, Coroutine, List, Optional, Tuple

from PyQt5 import QtCore, QtGui, QtWidgets

from ..analysis.errors import MissingCredentialsError
from ..analysis.service import AnalysisService
from ..analysis.session import (
    FOREST,
    INCENTIVES,
    KNOWLEDGE,
    PLANT,
    WASTE,
    OperationStatus,
)
from ..config import SIMULATION_INTERVAL_S, Settings
from ..data.scenarios import scenario_ids
from ..incentives import normalize_shares, with_computed_fields
from ..layers.entities import EntityKind, MapEntity, SITUATION_LABELS, describe_entity
from ..logger import setup_logging
from ..models.forest import GeoPoint, Severity, filter_alerts, sort_by_severity
from ..session import DashboardSession
from .map_widget import MapWidget

log = logging.getLogger(__name__)

_SAMPLE_LABEL = "Karura threat sample"

_SEVERITY_COLORS = {
    Severity.CRITICAL: "#ef4444",
    Severity.HIGH: "#f97316",
    Severity.MODERATE: "#eab308",
    Severity.LOW: "#10b981",
}

_RUN_LABELS = {
    FOREST: "Run forest analysis",
    WASTE: "Run waste analysis",
    INCENTIVES: "Suggest PES programs",
    KNOWLEDGE: "Ask",
    PLANT: "Identify plant…",
}


def _esc(text: Any) -> str:
    return html.escape(str(text))


def _rows_html(rows: List[Tuple[str, str]]) -> str:
    cells = "".join(
        f"<tr><td style='color:#6b8f80;padding-right:8px'>{_esc(k)}</td><td>{_esc(v)}</td></tr>"
        for k, v in rows
    )
    return f"<table>{cells}</table>"


def _bullets(items) -> str:
    items = list(items)
    if not items:
        return ""
    return "<ul>" + "".join(f"<li>{_esc(i)}</li>" for i in items) + "</ul>"


# ── Thread hand-off ──────────────────────────────────────────────────

class GuiDispatcher(QtCore.QObject):
    """Runs callables on the thread that owns this object.

    Called on the owner thread the callable runs at once; from any other
    thread it is queued and drained by a queued slot call.
    """

    def __init__(self, parent: Optional[QtCore.QObject] = None):
        super().__init__(parent)
        self._pending: collections.deque = collections.deque()

    def __call__(self, fn: Callable[[], None]) -> None:
        if QtCore.QThread.currentThread() is self.thread():
            fn()
            return
        self._pending.append(fn)
        QtCore.QMetaObject.invokeMethod(self, "_drain", QtCore.Qt.QueuedConnection)

    @QtCore.pyqtSlot()
    def _drain(self) -> None:
        while self._pending:
            self._pending.popleft()()


# ── Async runner ──────────────────────────────────────────────────────

class AnalysisRunner(QtCore.QObject):
    """Runs store coroutines on a private event loop thread.

    ``finished(operation, error)`` is emitted on the GUI thread; ``error``
    is empty unless the coroutine itself raised.
    """

    finished = QtCore.pyqtSignal(str, str)

    def __init__(self, parent: Optional[QtCore.QObject] = None):
        super().__init__(parent)
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(
            target=self._loop.run_forever, daemon=True, name="analysis-loop"
        )
        self._thread.start()

    def submit(self, operation: str, coro: Coroutine) -> Future:
        fut = asyncio.run_coroutine_threadsafe(coro, self._loop)
        fut.add_done_callback(lambda f: self._done(operation, f))
        return fut

    def _done(self, operation: str, fut: Future) -> None:
        error = ""
        if fut.cancelled():
            error = "cancelled"
        elif fut.exception() is not None:
            error = str(fut.exception())
            log.error("%s coroutine raised: %s", operation, error)
        QtCore.QMetaObject.invokeMethod(
            self, "_emit_finished",
            QtCore.Qt.QueuedConnection,
            QtCore.Q_ARG(str, operation),
            QtCore.Q_ARG(str, error),
        )

    @QtCore.pyqtSlot(str, str)
    def _emit_finished(self, operation: str, error: str) -> None:
        self.finished.emit(operation, error)

    def call_soon(self, fn, *args) -> None:
        """Run a plain store mutation on the loop thread."""
        self._loop.call_soon_threadsafe(fn, *args)

    def shutdown(self) -> None:
        self._loop.call_soon_threadsafe(self._loop.stop)


# ── Main window ───────────────────────────────────────────────────────

class MainWindow(QtWidgets.QMainWindow):
    def __init__(self, session: DashboardSession):
        super().__init__()
        self._session = session
        self._store = session.store
        self._banner_op: Optional[str] = None
        self.setWindowTitle("ForestWatch Kenya")
        self.resize(1400, 900)

        self.setStyleSheet("""
            QMainWindow, QWidget, QFrame, QSplitter {
                background-color: #030712;
                color: #d1e7dd;
            }
            QTabWidget::pane { border: 1px solid #0f2f24; }
            QTabBar::tab {
                background: #06120e; color: #7fa898; padding: 4px 10px;
                border: 1px solid #0f2f24;
            }
            QTabBar::tab:selected { color: #10b981; border-bottom-color: #10b981; }
            QComboBox, QLineEdit {
                background: #06120e; color: #a7c7ba;
                border: 1px solid #134e3a; padding: 2px 4px;
            }
            QPushButton {
                background: #064e3b; color: #d1fae5;
                border: 1px solid #10b981; padding: 4px 10px;
            }
            QPushButton:disabled { background: #0b1f19; color: #4b6b5e; border-color: #134e3a; }
            QListWidget { background: #06120e; border: 1px solid #0f2f24; }
            QListWidget::item:selected { background: #064e3b; }
            QSplitter::handle { background: #0f2f24; }
            QLabel { background: transparent; }
        """)

        self._runner = AnalysisRunner(self)
        self._runner.finished.connect(self._on_run_finished)

        central = QtWidgets.QWidget()
        self.setCentralWidget(central)
        outer = QtWidgets.QVBoxLayout(central)
        outer.setContentsMargins(6, 6, 6, 6)
        outer.setSpacing(4)

        # ── Top bar ──
        top = QtWidgets.QHBoxLayout()
        title = QtWidgets.QLabel("ForestWatch Kenya")
        title.setStyleSheet("font-size: 15px; font-weight: bold; color: #10b981;")
        top.addWidget(title)
        top.addSpacing(16)

        self._scenario_combo = QtWidgets.QComboBox()
        self._scenario_combo.addItem(_SAMPLE_LABEL, None)
        for sid in scenario_ids():
            self._scenario_combo.addItem(sid.replace("-", " ").title(), sid)
        if session.scenario_id:
            idx = self._scenario_combo.findData(session.scenario_id)
            self._scenario_combo.setCurrentIndex(max(idx, 0))
        self._scenario_combo.currentIndexChanged.connect(self._on_scenario_changed)
        top.addWidget(self._scenario_combo)

        self._live_check = QtWidgets.QCheckBox("Live simulation")
        self._live_check.toggled.connect(self._on_live_toggled)
        top.addWidget(self._live_check)
        top.addStretch(1)

        self._btn_forest = QtWidgets.QPushButton(_RUN_LABELS[FOREST])
        self._btn_forest.clicked.connect(self._run_forest)
        top.addWidget(self._btn_forest)
        outer.addLayout(top)

        self._banner = QtWidgets.QLabel()
        self._banner.setWordWrap(True)
        self._banner.setStyleSheet(
            "background: #450a0a; color: #fecaca; border: 1px solid #ef4444; padding: 4px;"
        )
        self._banner.hide()
        outer.addWidget(self._banner)

        splitter = QtWidgets.QSplitter(QtCore.Qt.Horizontal)
        outer.addWidget(splitter, 1)

        self._map = MapWidget(session)
        splitter.addWidget(self._map)

        right = QtWidgets.QWidget()
        right_lay = QtWidgets.QVBoxLayout(right)
        right_lay.setContentsMargins(0, 0, 0, 0)
        right_lay.addWidget(self._build_detail_panel())
        self._tabs = QtWidgets.QTabWidget()
        self._tabs.addTab(self._build_alerts_tab(), "Alerts")
        self._tabs.addTab(self._build_waste_tab(), "Waste")
        self._tabs.addTab(self._build_incentives_tab(), "Incentives")
        self._tabs.addTab(self._build_restoration_tab(), "Restoration")
        self._tabs.addTab(self._build_knowledge_tab(), "Knowledge")
        right_lay.addWidget(self._tabs, 1)
        splitter.addWidget(right)
        splitter.setSizes([850, 550])

        self._sim_timer = QtCore.QTimer(self)
        self._sim_timer.setInterval(int(SIMULATION_INTERVAL_S * 1000))
        self._sim_timer.timeout.connect(lambda: self._runner.call_soon(self._session.simulate_tick))
        self._live_check.setEnabled(bool(session.scenario_id))

        self.statusBar().setStyleSheet("color: #6b8f80;")

        # Listeners may fire on the analysis thread
        self._store.add_listener(self._store_changed)
        self._session.selection.add_listener(lambda _entity: self._selection_changed())

        self._refresh_alerts()
        self._refresh_waste()
        self._refresh_programs()
        self._refresh_detail()
        self._sync_buttons()
        self._map.refresh()

    # ── Panels ──

    def _build_detail_panel(self) -> QtWidgets.QWidget:
        frame = QtWidgets.QFrame()
        frame.setStyleSheet("QFrame { border: 1px solid #134e3a; }")
        lay = QtWidgets.QVBoxLayout(frame)
        lay.setContentsMargins(6, 4, 6, 6)
        head = QtWidgets.QHBoxLayout()
        self._detail_title = QtWidgets.QLabel("Nothing selected")
        self._detail_title.setStyleSheet("font-weight: bold; border: none;")
        head.addWidget(self._detail_title, 1)
        self._btn_collapse = QtWidgets.QPushButton("–")
        self._btn_collapse.setFixedWidth(28)
        self._btn_collapse.clicked.connect(self._on_toggle_detail)
        head.addWidget(self._btn_collapse)
        self._btn_close = QtWidgets.QPushButton("×")
        self._btn_close.setFixedWidth(28)
        self._btn_close.clicked.connect(self._on_close_detail)
        head.addWidget(self._btn_close)
        lay.addLayout(head)
        self._detail_body = QtWidgets.QLabel()
        self._detail_body.setWordWrap(True)
        self._detail_body.setTextFormat(QtCore.Qt.RichText)
        self._detail_body.setStyleSheet("border: none;")
        lay.addWidget(self._detail_body)
        self._detail_frame = frame
        return frame

    def _build_alerts_tab(self) -> QtWidgets.QWidget:
        w = QtWidgets.QWidget()
        lay = QtWidgets.QVBoxLayout(w)
        self._summary_label = QtWidgets.QLabel("No forest analysis yet.")
        self._summary_label.setWordWrap(True)
        self._summary_label.setTextFormat(QtCore.Qt.RichText)
        lay.addWidget(self._summary_label)

        row = QtWidgets.QHBoxLayout()
        row.addWidget(QtWidgets.QLabel("Severity:"))
        self._severity_combo = QtWidgets.QComboBox()
        self._severity_combo.addItem("All", None)
        for sev in reversed(list(Severity)):
            self._severity_combo.addItem(sev.value, sev)
        self._severity_combo.currentIndexChanged.connect(lambda _i: self._refresh_alerts())
        row.addWidget(self._severity_combo)
        row.addStretch(1)
        lay.addLayout(row)

        self._alert_list = QtWidgets.QListWidget()
        self._alert_list.itemClicked.connect(self._on_alert_clicked)
        lay.addWidget(self._alert_list, 1)
        return w

    def _build_waste_tab(self) -> QtWidgets.QWidget:
        w = QtWidgets.QWidget()
        lay = QtWidgets.QVBoxLayout(w)
        self._btn_waste = QtWidgets.QPushButton(_RUN_LABELS[WASTE])
        self._btn_waste.clicked.connect(self._run_waste)
        lay.addWidget(self._btn_waste)
        self._waste_label = QtWidgets.QLabel()
        self._waste_label.setWordWrap(True)
        self._waste_label.setTextFormat(QtCore.Qt.RichText)
        self._waste_label.setAlignment(QtCore.Qt.AlignTop)
        lay.addWidget(self._waste_label, 1)
        return w

    def _build_incentives_tab(self) -> QtWidgets.QWidget:
        w = QtWidgets.QWidget()
        lay = QtWidgets.QVBoxLayout(w)
        self._btn_incentives = QtWidgets.QPushButton(_RUN_LABELS[INCENTIVES])
        self._btn_incentives.clicked.connect(self._run_incentives)
        lay.addWidget(self._btn_incentives)
        self._narrative_label = QtWidgets.QLabel()
        self._narrative_label.setWordWrap(True)
        lay.addWidget(self._narrative_label)
        self._program_list = QtWidgets.QListWidget()
        self._program_list.itemClicked.connect(self._on_program_clicked)
        lay.addWidget(self._program_list, 1)
        return w

    def _build_restoration_tab(self) -> QtWidgets.QWidget:
        view = QtWidgets.QTextBrowser()
        view.setStyleSheet("background: #06120e; border: none;")
        parts = ["<h3>Restoration projects</h3>"]
        for p in self._store.restoration_projects:
            rows = describe_entity(MapEntity.of(p))[1:]
            parts.append(f"<p><b>{_esc(p.name)}</b></p>{_rows_html(rows)}")
        parts.append("<h3>Partners</h3>")
        for partner in self._store.partners:
            parts.append(
                f"<p><b>{_esc(partner.name)}</b> ({_esc(partner.type)}) · "
                f"{_esc(partner.location_label)}<br>{_esc(partner.description)}</p>"
            )
        parts.append("<h3>Eco-tourism</h3>")
        for t in self._store.tourism_products:
            fee = f" · eco fee KES {t.eco_fee_kes_per_visit:,.0f}" if t.eco_fee_kes_per_visit else ""
            parts.append(f"<p><b>{_esc(t.name)}</b> · {_esc(t.location_label)}{fee}</p>")
        view.setHtml("".join(parts))
        return view

    def _build_knowledge_tab(self) -> QtWidgets.QWidget:
        w = QtWidgets.QWidget()
        lay = QtWidgets.QVBoxLayout(w)
        row = QtWidgets.QHBoxLayout()
        self._question_edit = QtWidgets.QLineEdit()
        self._question_edit.setPlaceholderText("Ask about Kenyan forests, species, restoration…")
        self._question_edit.returnPressed.connect(self._ask_knowledge)
        row.addWidget(self._question_edit, 1)
        self._btn_ask = QtWidgets.QPushButton(_RUN_LABELS[KNOWLEDGE])
        self._btn_ask.clicked.connect(self._ask_knowledge)
        row.addWidget(self._btn_ask)
        lay.addLayout(row)
        self._answer_label = QtWidgets.QLabel()
        self._answer_label.setWordWrap(True)
        self._answer_label.setTextFormat(QtCore.Qt.RichText)
        lay.addWidget(self._answer_label)

        self._btn_plant = QtWidgets.QPushButton(_RUN_LABELS[PLANT])
        self._btn_plant.clicked.connect(self._identify_plant)
        lay.addWidget(self._btn_plant)
        self._plant_label = QtWidgets.QLabel()
        self._plant_label.setWordWrap(True)
        self._plant_label.setTextFormat(QtCore.Qt.RichText)
        lay.addWidget(self._plant_label)
        lay.addStretch(1)
        return w

    # ── Thread hand-off ──

    def _store_changed(self, what: str) -> None:
        QtCore.QMetaObject.invokeMethod(
            self, "_on_store_event",
            QtCore.Qt.QueuedConnection,
            QtCore.Q_ARG(str, what),
        )

    def _selection_changed(self) -> None:
        QtCore.QMetaObject.invokeMethod(self, "_on_selection_event", QtCore.Qt.QueuedConnection)

    @QtCore.pyqtSlot(str)
    def _on_store_event(self, what: str) -> None:
        self._sync_buttons()
        if what in (FOREST, "data"):
            self._refresh_alerts()
        elif what == WASTE:
            self._refresh_waste()
        elif what == INCENTIVES:
            self._refresh_programs()
        elif what == KNOWLEDGE:
            self._refresh_knowledge()
        elif what == PLANT:
            self._refresh_plant()
        if what != "data":
            self._show_state_error(what)
        self._refresh_detail()
        self._map.refresh()

    @QtCore.pyqtSlot()
    def _on_selection_event(self) -> None:
        self._refresh_detail()
        alert = self._session.selection.selected_alert
        for i in range(self._alert_list.count()):
            item = self._alert_list.item(i)
            item.setSelected(alert is not None and item.data(QtCore.Qt.UserRole) == alert.id)
        self._map.refresh()

    @QtCore.pyqtSlot(str, str)
    def _on_run_finished(self, operation: str, error: str) -> None:
        if error:
            self._show_banner(operation, error)
        self._sync_buttons()

    # ── Refresh ──

    def _sync_buttons(self) -> None:
        buttons = {
            FOREST: self._btn_forest,
            WASTE: self._btn_waste,
            INCENTIVES: self._btn_incentives,
            KNOWLEDGE: self._btn_ask,
            PLANT: self._btn_plant,
        }
        for op, btn in buttons.items():
            busy = self._store.is_pending(op)
            btn.setEnabled(not busy)
            btn.setText("Analysing…" if busy else _RUN_LABELS[op])

    def _show_banner(self, operation: str, message: str) -> None:
        self._banner_op = operation
        self._banner.setText(message)
        self._banner.show()

    def _show_state_error(self, operation: str) -> None:
        state = self._store.state(operation)
        if state.status is OperationStatus.FAILED and state.error:
            self._show_banner(operation, state.error)
        elif state.status is OperationStatus.SUCCEEDED and self._banner_op == operation:
            self._banner_op = None
            self._banner.hide()

    def _refresh_alerts(self) -> None:
        result = self._store.forest_result
        if result is None:
            self._summary_label.setText("No forest analysis yet.")
        else:
            s = result.summary
            color = _SEVERITY_COLORS[s.overall_forest_risk]
            self._summary_label.setText(
                f"Overall risk: <b style='color:{color}'>{_esc(s.overall_forest_risk.value)}</b>"
                f" · {len(result.alerts)} alerts<br>{_esc(s.notable_patterns)}"
                + (f"<br>Hotspots: {_esc(', '.join(s.key_hotspots))}" if s.key_hotspots else "")
            )

        severity = self._severity_combo.currentData()
        alerts = sort_by_severity(filter_alerts(list(self._store.alerts), severity=severity))
        selected = self._session.selection.selected_alert
        self._alert_list.clear()
        for a in alerts:
            item = QtWidgets.QListWidgetItem(
                f"[{a.severity.value}] {SITUATION_LABELS[a.type]}  ·  TWS {a.threat_weight_score:.2f}"
            )
            item.setData(QtCore.Qt.UserRole, a.id)
            item.setForeground(QtGui.QColor(_SEVERITY_COLORS[a.severity]))
            self._alert_list.addItem(item)
            if selected is not None and selected.id == a.id:
                item.setSelected(True)

    def _refresh_waste(self) -> None:
        result = self._store.waste_result
        data = self._store.waste_input
        rows = [
            ("Smart bins", str(len(data.smart_bins))),
            ("Recent collections", f"{data.total_weight_kg:.1f} kg"),
        ]
        text = _rows_html(rows)
        if result is not None:
            s = result.summary
            text += _rows_html([
                ("Efficiency", f"{s.efficiency_score:.0f} / 100"),
                ("Fraud risk", s.fraud_risk_level),
                ("Value generated", f"KES {s.economic_value_generated:,.0f}"),
                ("Carbon offset", f"{s.carbon_offset_tonnes:.2f} t"),
                ("Routing", s.suggested_route_optimization),
            ])
            text += _bullets(result.actionable_insights)
        self._waste_label.setText(text)

    def _refresh_programs(self) -> None:
        insights = self._store.incentive_insights
        self._narrative_label.setText(insights.narrative_summary if insights else "")
        self._program_list.clear()
        for p in self._store.pes_programs:
            item = QtWidgets.QListWidgetItem(
                f"{p.name}  ·  {p.type.value}  ·  readiness {p.readiness_score:.0%}"
            )
            item.setData(QtCore.Qt.UserRole, p.id)
            self._program_list.addItem(item)

    def _refresh_knowledge(self) -> None:
        ans = self._store.knowledge_answer
        if ans is None:
            return
        text = _esc(ans.answer)
        if ans.related_species:
            text += f"<br><i>Species:</i> {_esc(', '.join(ans.related_species))}"
        text += _bullets(ans.suggested_actions)
        self._answer_label.setText(text)

    def _refresh_plant(self) -> None:
        res = self._store.plant_result
        if res is None:
            return
        self._plant_label.setText(
            f"<b>{_esc(res.common_name)}</b> <i>({_esc(res.scientific_name)})</i>"
            f" · {_esc(res.status)}<br>{_esc(res.health_assessment)}"
            + _bullets(res.preservation_actions)
            + (f"<i>{_esc(res.fun_fact)}</i>" if res.fun_fact else "")
        )

    def _refresh_detail(self) -> None:
        sel = self._session.selection
        entity = sel.selection
        if entity is None:
            self._detail_title.setText("Nothing selected")
            self._detail_body.setText("Click a marker on the map or an alert in the list.")
            self._detail_body.show()
            self._btn_collapse.setEnabled(False)
            self._btn_close.setEnabled(False)
            return
        self._btn_collapse.setEnabled(True)
        self._btn_close.setEnabled(True)
        self._detail_title.setText(f"{entity.kind.value.title()} · {entity.entity_id}")
        self._detail_body.setText(self._detail_html(entity))
        self._detail_body.setVisible(not sel.detail_collapsed)
        self._btn_collapse.setText("+" if sel.detail_collapsed else "–")

    def _detail_html(self, entity: MapEntity) -> str:
        body = _rows_html(describe_entity(entity))
        if entity.kind is EntityKind.ALERT:
            alert = entity.record
            body += f"<p>{_esc(alert.explanation)}</p>"
            ev = self._session.evidence_for(alert)
            if ev.is_empty:
                body += "<p><i>No linked records in the current dataset.</i></p>"
            else:
                items = (
                    [f"Tile {t.id} (risk {t.risk_score:.2f})" for t in ev.tiles]
                    + [f"Sensor {s.sensor_id}: {s.temperature:.1f} °C, smoke {s.smoke_level:.2f}"
                       for s in ev.sensors]
                    + [f"Report {r.report_id}: {r.description}" for r in ev.reports]
                )
                body += "<p><b>Evidence</b></p>" + _bullets(items)
        elif entity.kind is EntityKind.INCENTIVE:
            program = entity.record
            computed = with_computed_fields(program)
            body += _rows_html([
                ("Computed readiness", f"{computed.readiness_score:.0%}"),
                ("Computed payment", f"KES {computed.indicative_payment_per_period_kes:,.0f}"),
            ])
            shares = normalize_shares(program.benefit_sharing)
            if shares:
                body += "<p><b>Benefit sharing</b></p>" + _bullets(
                    f"{s.stakeholder}: {s.percentage:.0f}%" for s in shares
                )
            if program.notes:
                body += f"<p><i>{_esc(program.notes)}</i></p>"
        return body

    # ── Actions ──

    def _submit(self, operation: str, coro: Coroutine) -> None:
        self._runner.submit(operation, coro)
        self.statusBar().showMessage(f"{operation} analysis started", 3000)

    def _run_forest(self) -> None:
        if not self._store.is_pending(FOREST):
            self._submit(FOREST, self._store.run_forest_analysis())

    def _run_waste(self) -> None:
        if not self._store.is_pending(WASTE):
            self._submit(WASTE, self._store.run_waste_analysis())

    def _run_incentives(self) -> None:
        if not self._store.is_pending(INCENTIVES):
            self._submit(INCENTIVES, self._store.run_incentive_analysis())

    def _ask_knowledge(self) -> None:
        question = self._question_edit.text().strip()
        if not question or self._store.is_pending(KNOWLEDGE):
            return
        self._submit(KNOWLEDGE, self._store.ask_knowledge(question))

    def _identify_plant(self) -> None:
        if self._store.is_pending(PLANT):
            return
        path, _ = QtWidgets.QFileDialog.getOpenFileName(
            self, "Choose a plant photo", "", "Images (*.jpg *.jpeg)"
        )
        if not path:
            return
        with open(path, "rb") as f:
            image = f.read()
        if not image:
            self.statusBar().showMessage("Empty image file", 3000)
            return
        self._submit(PLANT, self._store.identify_plant(image, self._session.user_location))

    def _on_scenario_changed(self, _index: int) -> None:
        sid = self._scenario_combo.currentData()
        if sid:
            self._runner.call_soon(self._session.load_scenario, sid)
        else:
            self._runner.call_soon(self._session.load_sample)
            self._live_check.setChecked(False)
        self._live_check.setEnabled(bool(sid))

    def _on_live_toggled(self, on: bool) -> None:
        if on:
            log.info("Live simulation started (%s)", self._session.scenario_id)
            self._sim_timer.start()
        else:
            self._sim_timer.stop()

    def _on_alert_clicked(self, item: QtWidgets.QListWidgetItem) -> None:
        alert = self._store.find_alert(item.data(QtCore.Qt.UserRole))
        if alert is not None:
            self._session.select_alert(alert)

    def _on_program_clicked(self, item: QtWidgets.QListWidgetItem) -> None:
        pid = item.data(QtCore.Qt.UserRole)
        program = next((p for p in self._store.pes_programs if p.id == pid), None)
        if program is None:
            return
        try:
            self._session.selection.select(MapEntity.of(program))
        except ValueError as exc:
            self.statusBar().showMessage(str(exc), 4000)

    def _on_toggle_detail(self) -> None:
        self._session.selection.toggle_detail()
        self._refresh_detail()

    def _on_close_detail(self) -> None:
        sel = self._session.selection
        if sel.selected_program is not None:
            sel.clear()
        else:
            sel.close_detail()

    def closeEvent(self, event):
        self._sim_timer.stop()
        self._runner.shutdown()
        super().closeEvent(event)


# ── Entry point ───────────────────────────────────────────────────────

def _parse_location(text: str) -> GeoPoint:
    try:
        lat, lng = (float(v) for v in text.split(","))
        return GeoPoint(lat, lng)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected LAT,LNG: {exc}") from None


def main():
    parser = argparse.ArgumentParser(description="ForestWatch Kenya dashboard")
    parser.add_argument("--scenario", choices=scenario_ids(), default=None,
                        help="Start from a demo scenario instead of the Karura sample")
    parser.add_argument("--location", type=_parse_location, default=None,
                        help="Operator position as LAT,LNG; frames the map on start")
    parser.add_argument("--event-log", action="store_true",
                        help="Dump every finished analysis run as JSON into the log directory")
    parser.add_argument("--kiosk", action="store_true", help="Start full screen")
    parser.add_argument("--debug", action="store_true", help="Debug logging")
    args, remaining = parser.parse_known_args()

    settings = Settings.from_env()
    logfile = setup_logging(settings, debug=args.debug)
    log.info("Logging to %s", logfile)

    try:
        service = AnalysisService(settings)
    except MissingCredentialsError as exc:
        log.error("%s", exc)
        parser.exit(2, f"{exc}\n")

    sys.argv = sys.argv[:1] + remaining
    app = QtWidgets.QApplication(sys.argv)
    app.setStyle("Fusion")

    dispatcher = GuiDispatcher()
    session = DashboardSession(
        service,
        scenario_id=args.scenario,
        user_location=args.location,
        event_log_dir=settings.log_dir if args.event_log else None,
        dispatch=dispatcher,
    )

    # Dark palette, forest greens
    palette = QtGui.QPalette()
    palette.setColor(QtGui.QPalette.Window, QtGui.QColor("#030712"))
    palette.setColor(QtGui.QPalette.WindowText, QtGui.QColor("#d1e7dd"))
    palette.setColor(QtGui.QPalette.Base, QtGui.QColor("#06120e"))
    palette.setColor(QtGui.QPalette.AlternateBase, QtGui.QColor("#030712"))
    palette.setColor(QtGui.QPalette.Text, QtGui.QColor("#d1e7dd"))
    palette.setColor(QtGui.QPalette.Button, QtGui.QColor("#064e3b"))
    palette.setColor(QtGui.QPalette.ButtonText, QtGui.QColor("#d1fae5"))
    palette.setColor(QtGui.QPalette.Highlight, QtGui.QColor("#10b981"))
    app.setPalette(palette)

    win = MainWindow(session)
    if args.kiosk or settings.kiosk:
        win.showFullScreen()
    else:
        win.show()

    def _sigint_handler(*_args):
        log.info("Signal received, closing dashboard")
        win.close()

    signal.signal(signal.SIGINT, _sigint_handler)
    signal.signal(signal.SIGTERM, _sigint_handler)

    # Qt blocks Python signal delivery; wake the interpreter every 200 ms
    _sig_timer = QtCore.QTimer()
    _sig_timer.timeout.connect(lambda: None)
    _sig_timer.start(200)

    sys.exit(app.exec_())


if __name__ == "__main__":
    main()
