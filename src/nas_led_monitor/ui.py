from __future__ import annotations

import json
import sys
from typing import Optional

from PySide6 import QtCore, QtWidgets

from .models import CycleResult, IndicatorUpdate
from .monitor import STATE_COLORS, Monitor


class MainWindow(QtWidgets.QMainWindow):
    def __init__(self, monitor: Monitor) -> None:
        super().__init__()
        self.monitor = monitor
        self.setWindowTitle("NAS LED Monitor")
        self.resize(860, 420)

        self.status_label = QtWidgets.QLabel("")
        self.run_button = QtWidgets.QPushButton("Run cycle")
        self.run_button.clicked.connect(self.run_cycle)
        self.export_json_button = QtWidgets.QPushButton("Export JSON")
        self.export_json_button.clicked.connect(self.export_json)
        self._last_result: Optional[CycleResult] = None

        header = QtWidgets.QHBoxLayout()
        header.addWidget(self.run_button)
        header.addWidget(self.export_json_button)
        header.addStretch(1)
        header.addWidget(self.status_label)

        self.tree = QtWidgets.QTreeWidget()
        self.tree.setColumnCount(6)
        self.tree.setHeaderLabels(["Indicator", "State", "Device", "Color", "Brightness", "Notes"])
        self.tree.setAlternatingRowColors(True)

        root = QtWidgets.QWidget()
        layout = QtWidgets.QVBoxLayout(root)
        layout.addLayout(header)
        layout.addWidget(self.tree)
        self.setCentralWidget(root)

        led = "available" if monitor.driver.available else "not available"
        self._set_status(f"LED controller {led}")

    def _set_status(self, text: str) -> None:
        self.status_label.setText(text)

    def run_cycle(self) -> None:
        self.tree.clear()
        self._set_status("Checking...")
        result = self.monitor.run_cycle()
        for update in result.updates.values():
            item = QtWidgets.QTreeWidgetItem(
                [
                    update.indicator,
                    update.state.name if update.state is not None else "ABSENT",
                    update.device or "",
                    str(update.color),
                    str(update.brightness),
                    update.reason if update.applied else f"{update.reason} (not written)",
                ]
            )
            _apply_state_color(item, update)
            self.tree.addTopLevelItem(item)
        self._last_result = result
        self._set_status(f"Checked at {result.started_at:%H:%M:%S}")

    def export_json(self) -> None:
        if self._last_result is None:
            self._set_status("Nothing to export. Run a cycle first.")
            return
        path, _ = QtWidgets.QFileDialog.getSaveFileName(
            self, "Export JSON", "nas_led_status.json", "JSON Files (*.json)"
        )
        if not path:
            return
        try:
            with open(path, "w", encoding="utf-8") as f:
                json.dump(self._last_result.to_report(), f, ensure_ascii=False, indent=2)
            self._set_status(f"Exported: {path}")
        except OSError as exc:
            self._set_status(f"Export failed: {exc}")


def _apply_state_color(item: QtWidgets.QTreeWidgetItem, update: IndicatorUpdate) -> None:
    role = STATE_COLORS.get(update.state) if update.state is not None else None
    if role in ("critical", "faulted"):
        color = QtCore.Qt.GlobalColor.red
    elif role in ("warning", "degraded", "scrub_errors"):
        color = QtCore.Qt.GlobalColor.darkYellow
    elif role in ("healthy", "online"):
        color = QtCore.Qt.GlobalColor.darkGreen
    elif role in ("scrub_active", "resilver"):
        color = QtCore.Qt.GlobalColor.darkCyan
    else:
        color = QtCore.Qt.GlobalColor.gray

    for i in range(item.columnCount()):
        item.setForeground(i, color)


def main(monitor: Monitor) -> int:
    app = QtWidgets.QApplication(sys.argv[:1])
    win = MainWindow(monitor)
    win.show()
    win.run_cycle()
    return app.exec()
