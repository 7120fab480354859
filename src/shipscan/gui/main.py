"""Qt-based scanning dialog and launcher window."""

from __future__ import annotations

import asyncio
import logging
import sys
from dataclasses import replace
from typing import List, Optional

from PySide6.QtCore import QTimer
from PySide6.QtWidgets import (
    QApplication,
    QComboBox,
    QDialog,
    QDoubleSpinBox,
    QFileDialog,
    QFormLayout,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QListWidget,
    QMainWindow,
    QMessageBox,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from ..config import ConfigRepository, Facing, ScannerConfig
from ..detectors import StillImageDetector
from ..errors import AcquisitionError, ScanError, ValidationError
from ..events import CodeAcceptedEvent, CodeRemovedEvent, ErrorEvent, Event, StateChangeEvent
from ..session import ScanSession, ScanSessionManager, SessionState

logger = logging.getLogger(__name__)


class ScanDialog(QDialog):
    """Collects barcodes from still images and the keyboard into one session."""

    def __init__(
        self,
        config: ScannerConfig,
        existing: Optional[List[str]] = None,
        detector: Optional[StillImageDetector] = None,
        parent: Optional[QWidget] = None,
    ) -> None:
        super().__init__(parent)
        self.setWindowTitle("Scan Barcode")
        self.resize(420, 520)

        self.result_codes: Optional[List[str]] = None
        self._detector = detector or StillImageDetector()
        self._manager = ScanSessionManager(self._detector, config=config, event_callback=self._handle_event)
        self._session: ScanSession = self._manager.open(
            existing or [],
            on_scanned=self._on_scanned,
            on_close=self._on_closed,
        )

        self._build_ui()
        self._refresh_codes()

        self._state_timer = QTimer(self)
        self._state_timer.setInterval(250)
        self._state_timer.timeout.connect(self._poll_state)
        self._state_timer.start()

        self._begin_acquisition()

    @property
    def session(self) -> ScanSession:
        return self._session

    def _build_ui(self) -> None:
        layout = QVBoxLayout(self)

        self.status_label = QLabel("Idle")
        layout.addWidget(self.status_label)

        self.capture_button = QPushButton("Load image…")
        self.capture_button.clicked.connect(self._on_capture)
        layout.addWidget(self.capture_button)

        self.count_label = QLabel()
        layout.addWidget(self.count_label)

        self.code_list = QListWidget()
        layout.addWidget(self.code_list, stretch=1)

        self.remove_button = QPushButton("Remove selected")
        self.remove_button.clicked.connect(self._on_remove)
        layout.addWidget(self.remove_button)

        manual_layout = QHBoxLayout()
        self.manual_edit = QLineEdit()
        self.manual_edit.setPlaceholderText("Enter barcode number")
        self.manual_edit.textChanged.connect(self._on_manual_changed)
        self.manual_edit.returnPressed.connect(self._on_manual_submit)
        manual_layout.addWidget(self.manual_edit)
        self.add_button = QPushButton("Add")
        self.add_button.clicked.connect(self._on_manual_submit)
        self.add_button.setEnabled(False)
        manual_layout.addWidget(self.add_button)
        layout.addLayout(manual_layout)

        action_layout = QHBoxLayout()
        self.done_button = QPushButton()
        self.done_button.clicked.connect(self._on_done)
        action_layout.addWidget(self.done_button)
        cancel_button = QPushButton("Cancel")
        cancel_button.clicked.connect(self.reject)
        action_layout.addWidget(cancel_button)
        layout.addLayout(action_layout)

    def _begin_acquisition(self) -> None:
        try:
            asyncio.run(self._session.begin_acquisition())
        except AcquisitionError as exc:
            self.capture_button.setEnabled(False)
            self.status_label.setText(f"{exc.message}. Please enter barcodes manually.")

    def _handle_event(self, event: Event) -> None:
        if isinstance(event, (CodeAcceptedEvent, CodeRemovedEvent)):
            self._refresh_codes()
        elif isinstance(event, StateChangeEvent):
            self._show_state(event.state)
        elif isinstance(event, ErrorEvent):
            logger.warning("Scan error: %s", event.message)

    def _show_state(self, state: str) -> None:
        if state == SessionState.ACTIVE.value:
            self.status_label.setText("Ready to scan")
        elif state == SessionState.PAUSED.value and self._session.can_commit():
            self.status_label.setText("Scanned")
        elif state != SessionState.CLOSED.value:
            self.status_label.setText(state.capitalize())

    def _poll_state(self) -> None:
        if self._session.closed:
            self._state_timer.stop()
            return
        # reading the state lets an elapsed cooldown resume detection
        state = self._session.state
        self.capture_button.setEnabled(state is SessionState.ACTIVE)

    def _refresh_codes(self) -> None:
        codes = self._session.collected
        self.code_list.clear()
        self.code_list.addItems(codes)
        self.count_label.setText(f"Scanned Barcodes ({len(codes)}):")
        self.done_button.setText(f"Done ({len(codes)})")
        self.done_button.setEnabled(self._session.can_commit())
        self.add_button.setEnabled(self._session.can_submit_manual())

    def _on_capture(self) -> None:
        path, _ = QFileDialog.getOpenFileName(self, "Select barcode image", "", "Images (*.png *.jpg *.jpeg *.bmp)")
        if not path:
            return
        before = set(self._session.collected)
        try:
            found = self._detector.capture(path)
        except (OSError, RuntimeError) as exc:
            QMessageBox.warning(self, "Capture failed", str(exc))
            return
        if not found:
            self.status_label.setText("No barcode found in image")
            return
        skipped = [code for code in dict.fromkeys(found) if code in before]
        if skipped:
            self.status_label.setText(f"Skipped already scanned: {', '.join(skipped)}")

    def _on_manual_changed(self, text: str) -> None:
        self._session.pending_manual_input = text
        self.add_button.setEnabled(self._session.can_submit_manual())

    def _on_manual_submit(self) -> None:
        try:
            self._session.submit_manual()
        except ValidationError as exc:
            self.status_label.setText(str(exc))
            return
        self.manual_edit.clear()

    def _on_remove(self) -> None:
        row = self.code_list.currentRow()
        if row < 0:
            return
        self._session.remove(row)

    def _on_done(self) -> None:
        try:
            self._session.commit()
        except ScanError as exc:
            QMessageBox.warning(self, "Nothing to submit", str(exc))
            return
        self.accept()

    def _on_scanned(self, codes: List[str]) -> None:
        self.result_codes = codes

    def _on_closed(self) -> None:
        self.result_codes = None

    def reject(self) -> None:  # type: ignore[override]
        if not self._session.closed:
            self._session.cancel()
        super().reject()

    def closeEvent(self, event) -> None:  # type: ignore[override]
        if not self._session.closed:
            self._session.cancel()
        super().closeEvent(event)


class MainWindow(QMainWindow):
    """Launcher window holding the barcodes of the shipment being logged."""

    def __init__(self) -> None:
        super().__init__()
        self.setWindowTitle("Shipment Barcodes")
        self.resize(480, 420)

        self._config_repo = ConfigRepository()
        self._current_config = self._config_repo.load_recent()
        self._barcodes: List[str] = []

        self._build_ui()
        self._apply_config(self._current_config)

    def _build_ui(self) -> None:
        central = QWidget(self)
        layout = QVBoxLayout(central)

        form_layout = QFormLayout()
        layout.addLayout(form_layout)

        self.facing_combo = QComboBox()
        self.facing_combo.addItem("Back camera", Facing.ENVIRONMENT)
        self.facing_combo.addItem("Front camera", Facing.USER)
        form_layout.addRow("Camera", self.facing_combo)

        self.cooldown_spin = QDoubleSpinBox()
        self.cooldown_spin.setRange(0.0, 10.0)
        self.cooldown_spin.setDecimals(1)
        self.cooldown_spin.setSingleStep(0.5)
        form_layout.addRow("Cooldown (s)", self.cooldown_spin)

        self.scan_button = QPushButton("Scan Barcode")
        self.scan_button.clicked.connect(self.open_scanner)
        layout.addWidget(self.scan_button)

        self.barcode_list = QListWidget()
        layout.addWidget(self.barcode_list, stretch=1)

        self.setCentralWidget(central)

    def _apply_config(self, config: ScannerConfig) -> None:
        self.facing_combo.setCurrentIndex(0 if config.facing is Facing.ENVIRONMENT else 1)
        self.cooldown_spin.setValue(config.cooldown_seconds)

    def _build_config(self) -> ScannerConfig:
        facing = self.facing_combo.currentData()
        if not isinstance(facing, Facing):
            facing = Facing.ENVIRONMENT
        return replace(
            self._current_config,
            facing=facing,
            cooldown_seconds=float(self.cooldown_spin.value()),
        )

    def open_scanner(self) -> None:
        try:
            config = self._build_config()
        except ValueError as exc:
            QMessageBox.warning(self, "Invalid configuration", str(exc))
            return
        self._current_config = config
        self._config_repo.save_recent(config)

        dialog = ScanDialog(config, existing=self._barcodes, parent=self)
        dialog.exec()
        if dialog.result_codes is not None:
            self._barcodes = dialog.result_codes
            self.barcode_list.clear()
            self.barcode_list.addItems(self._barcodes)


def main() -> None:
    """Launch the GUI application."""

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    app = QApplication(sys.argv)
    window = MainWindow()
    window.show()
    sys.exit(app.exec())


__all__ = ["main", "MainWindow", "ScanDialog"]
