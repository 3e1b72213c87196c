"""
Map widget: paints the session's layer set with QPainter.

The fixed 800 x 1000 render surface is letter-boxed into the widget,
then the viewport transform (translate + uniform scale) is applied on
top.  Marker sizes are divided by the viewport scale so they stay the
same size on screen at any zoom.

While the viewport animates, a 16 ms QTimer repaints; it stops itself
once the transition has finished.
When the operator location is known a pulsing marker is drawn there,
repainted every 50 ms.

Signals
-------
entity_clicked(object)
    The MapEntity under a click, or None for a background click.
"""
from __future__ import annotations

import logging
import time
from typing import Optional, Tuple

from PyQt5 import QtCore, QtGui, QtWidgets

from ..config import MAP_HEIGHT, MAP_WIDTH
from ..geo.projector import Transform, project
from ..geo.regions import KENYA_BOUNDS, kenya_outline
from ..geo.viewport import ViewMode
from ..layers.entities import EntityKind, HeatSpot, RenderItem
from ..session import DashboardSession

log = logging.getLogger(__name__)

_FRAME_MS = 16
_PULSE_MS = 50
_PULSE_S = 2.0          # one location-marker pulse
_USER_COLOR = "#3b82f6"

_BTN_SS = (
    "QPushButton { background: rgba(6,16,12,190); color: #7fa898; "
    "border: 1px solid rgba(16,185,129,90); padding: 2px 8px; font-size: 10px; }"
    "QPushButton:hover { background: rgba(16,64,48,210); color: #34d399; }"
    "QPushButton:checked { color: #10b981; border-color: #10b981; }"
)


def _qcolor(hex_color: str, alpha: int = 255) -> QtGui.QColor:
    c = QtGui.QColor(hex_color)
    c.setAlpha(alpha)
    return c


class MapWidget(QtWidgets.QWidget):
    """Interactive dashboard map bound to a :class:`DashboardSession`."""

    entity_clicked = QtCore.pyqtSignal(object)

    def __init__(self, session: DashboardSession, parent: Optional[QtWidgets.QWidget] = None):
        super().__init__(parent)
        self._session = session
        self.setMinimumSize(400, 500)
        self.setMouseTracking(False)

        # Kenya outline in render coordinates (static)
        outline = QtGui.QPolygonF()
        for lng, lat in kenya_outline().exterior.coords:
            x, y = project(lat, lng, KENYA_BOUNDS)
            outline.append(QtCore.QPointF(x, y))
        self._outline = outline

        self._anim_timer = QtCore.QTimer(self)
        self._anim_timer.setInterval(_FRAME_MS)
        self._anim_timer.timeout.connect(self._animate_step)

        # Location marker pulse; runs only while a user location is known
        self._pulse_timer = QtCore.QTimer(self)
        self._pulse_timer.setInterval(_PULSE_MS)
        self._pulse_timer.timeout.connect(self.update)
        self._sync_pulse()

        # ── Floating controls ──
        self._overlay = QtWidgets.QWidget(self)
        self._overlay.setStyleSheet("background: transparent;")
        row = QtWidgets.QHBoxLayout(self._overlay)
        row.setContentsMargins(6, 4, 6, 0)
        row.setSpacing(4)

        self._btn_all = self._make_button("All data", checkable=True, checked=True)
        self._btn_alerts = self._make_button("Alerts only", checkable=True)
        group = QtWidgets.QButtonGroup(self)
        group.setExclusive(True)
        group.addButton(self._btn_all)
        group.addButton(self._btn_alerts)
        self._btn_all.clicked.connect(lambda: self._set_mode(ViewMode.ALL))
        self._btn_alerts.clicked.connect(lambda: self._set_mode(ViewMode.ALERTS))

        self._btn_heat = self._make_button("Heatmap", checkable=True, checked=True)
        self._btn_heat.clicked.connect(self._on_toggle_heat)
        self._btn_rest = self._make_button("Restoration", checkable=True, checked=True)
        self._btn_rest.clicked.connect(self._on_toggle_restoration)
        self._btn_reset = self._make_button("Reset zoom")
        self._btn_reset.clicked.connect(self._on_reset_zoom)

        for b in (self._btn_all, self._btn_alerts, self._btn_heat, self._btn_rest):
            row.addWidget(b)
        row.addStretch(1)
        row.addWidget(self._btn_reset)

    def _make_button(self, text: str, checkable: bool = False, checked: bool = False) -> QtWidgets.QPushButton:
        b = QtWidgets.QPushButton(text, self._overlay)
        b.setStyleSheet(_BTN_SS)
        b.setCheckable(checkable)
        b.setChecked(checked)
        b.setCursor(QtCore.Qt.PointingHandCursor)
        return b

    # ── Public ──

    def refresh(self) -> None:
        """Repaint and follow any viewport transition the session started."""
        if not self._anim_timer.isActive():
            self._anim_timer.start()
        self._sync_pulse()
        self.update()

    def _sync_pulse(self) -> None:
        if self._session.user_marker() is None:
            self._pulse_timer.stop()
        elif not self._pulse_timer.isActive():
            self._pulse_timer.start()

    # ── Coordinate mapping ──

    def _surface_fit(self) -> Tuple[float, float, float]:
        """(offset_x, offset_y, factor) placing the render surface in the widget."""
        f = min(self.width() / MAP_WIDTH, self.height() / MAP_HEIGHT)
        ox = (self.width() - MAP_WIDTH * f) / 2.0
        oy = (self.height() - MAP_HEIGHT * f) / 2.0
        return ox, oy, f

    def _widget_to_render(self, pos: QtCore.QPoint, t: Transform) -> Tuple[float, float]:
        ox, oy, f = self._surface_fit()
        sx = (pos.x() - ox) / f
        sy = (pos.y() - oy) / f
        return t.invert(sx, sy)

    # ── Animation ──

    def _animate_step(self) -> None:
        self.update()
        if not self._session.viewport.animating:
            self._anim_timer.stop()

    # ── Painting ──

    def paintEvent(self, event):
        painter = QtGui.QPainter(self)
        painter.setRenderHints(QtGui.QPainter.Antialiasing | QtGui.QPainter.SmoothPixmapTransform)
        painter.fillRect(self.rect(), QtGui.QColor("#030712"))

        t = self._session.viewport.current_at(time.monotonic())
        ox, oy, f = self._surface_fit()
        painter.translate(ox, oy)
        painter.scale(f, f)
        painter.setClipRect(QtCore.QRectF(0, 0, MAP_WIDTH, MAP_HEIGHT))
        painter.translate(t.translate_x, t.translate_y)
        painter.scale(t.scale, t.scale)
        px = 1.0 / t.scale     # one screen pixel in render units

        # Country outline
        pen = QtGui.QPen(_qcolor("#10b981", 160))
        pen.setWidthF(1.5 * px)
        painter.setPen(pen)
        painter.setBrush(_qcolor("#064e3b", 40))
        painter.drawPolygon(self._outline)

        layers = self._session.layers()
        for spot in layers.heat:
            self._draw_heat(painter, spot, px)

        selected = self._session.selection.selection
        for item in layers.draw_order():
            self._draw_item(painter, item, px, item.entity == selected)

        marker = self._session.user_marker()
        if marker is not None:
            self._draw_user_marker(painter, marker, px)
        painter.end()

    def _draw_heat(self, painter: QtGui.QPainter, spot: HeatSpot, px: float) -> None:
        r = spot.radius * px
        grad = QtGui.QRadialGradient(QtCore.QPointF(spot.x, spot.y), r)
        grad.setColorAt(0.0, _qcolor(spot.color, 150))
        grad.setColorAt(1.0, _qcolor(spot.color, 0))
        painter.setPen(QtCore.Qt.NoPen)
        painter.setBrush(QtGui.QBrush(grad))
        painter.drawEllipse(QtCore.QPointF(spot.x, spot.y), r, r)

    def _draw_user_marker(self, painter: QtGui.QPainter, pt: Tuple[float, float], px: float) -> None:
        x, y = pt
        phase = (time.monotonic() % _PULSE_S) / _PULSE_S
        ring = (6.0 + 14.0 * phase) * px
        painter.setPen(QtCore.Qt.NoPen)
        painter.setBrush(_qcolor(_USER_COLOR, int(120 * (1.0 - phase))))
        painter.drawEllipse(QtCore.QPointF(x, y), ring, ring)

        pen = QtGui.QPen(QtGui.QColor("#ffffff"))
        pen.setWidthF(2.0 * px)
        painter.setPen(pen)
        painter.setBrush(_qcolor(_USER_COLOR))
        painter.drawEllipse(QtCore.QPointF(x, y), 6.0 * px, 6.0 * px)

    def _draw_item(self, painter: QtGui.QPainter, item: RenderItem, px: float, selected: bool) -> None:
        kind = item.entity.kind
        outline = "#ffffff" if selected else ("#fbbf24" if item.funded else item.color)
        pen = QtGui.QPen(_qcolor(outline))
        pen.setWidthF((2.0 if selected or item.funded else 1.0) * px)
        painter.setPen(pen)

        if item.is_polygon:
            poly = QtGui.QPolygonF([QtCore.QPointF(x, y) for x, y in item.points])
            painter.setBrush(_qcolor(item.color, 50))
            painter.drawPolygon(poly)
            return

        x, y = item.points[0]
        r = item.radius * px
        if kind is EntityKind.RESTORATION:
            painter.setBrush(_qcolor(item.color, 50))
        elif kind is EntityKind.ALERT:
            if selected:
                r *= 1.5
            painter.setBrush(_qcolor(item.color))
            pen.setColor(QtGui.QColor("#ffffff"))
            painter.setPen(pen)
        else:
            painter.setBrush(_qcolor(item.color, 220))
        painter.drawEllipse(QtCore.QPointF(x, y), r, r)

        if kind is EntityKind.INCENTIVE:
            font = painter.font()
            font.setPointSizeF(max(r * 1.2, 0.1))
            font.setBold(True)
            painter.setFont(font)
            painter.setPen(QtGui.QColor("#78350f"))
            painter.drawText(QtCore.QRectF(x - r, y - r, 2 * r, 2 * r), QtCore.Qt.AlignCenter, "$")

    # ── Events ──

    def mousePressEvent(self, event):
        if event.button() != QtCore.Qt.LeftButton:
            return
        t = self._session.viewport.current_at(time.monotonic())
        x, y = self._widget_to_render(event.pos(), t)
        entity = self._session.click_at(x, y, scale=t.scale)
        log.debug("Click at render (%.1f, %.1f) -> %s", x, y, entity.entity_id if entity else None)
        self.entity_clicked.emit(entity)
        self.refresh()

    def resizeEvent(self, event):
        super().resizeEvent(event)
        self._overlay.setGeometry(0, 0, self.width(), 30)

    # ── Control handlers ──

    def _set_mode(self, mode: ViewMode) -> None:
        self._session.set_view_mode(mode)
        self.entity_clicked.emit(self._session.selection.selection)
        self.refresh()

    def _on_toggle_heat(self) -> None:
        self._btn_heat.setChecked(self._session.toggle_heatmap())
        self.update()

    def _on_toggle_restoration(self) -> None:
        self._btn_rest.setChecked(self._session.toggle_restoration())
        self.update()

    def _on_reset_zoom(self) -> None:
        self._session.reset_zoom()
        self.refresh()
