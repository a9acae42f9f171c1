from __future__ import annotations

from typing import Sequence

from vaani.conversation.session import SessionSnapshot
from vaani.conversation.transcript import Speaker, TranscriptEntry
from vaani.languages import LanguageCatalog

try:
    from PyQt6 import QtCore, QtGui, QtWidgets

    _PYQT_IMPORT_ERROR: ModuleNotFoundError | None = None
except ModuleNotFoundError as e:  # pragma: no cover - import guard path
    QtCore = None  # type: ignore[assignment]
    QtGui = None  # type: ignore[assignment]
    QtWidgets = None  # type: ignore[assignment]
    _PYQT_IMPORT_ERROR = e


def format_entry(entry: TranscriptEntry) -> str:
    return f"{entry.speaker.label}: {entry.text}"


def mic_button_text(listening: bool) -> str:
    return "Stop" if listening else "Mic"


def translate_button_text(busy: bool) -> str:
    return "Translating..." if busy else "Translate"


def status_text(snapshot: SessionSnapshot, catalog: LanguageCatalog) -> str:
    parts = [
        f"{catalog.label_for(snapshot.speaker1_language)} <-> {catalog.label_for(snapshot.speaker2_language)}"
    ]
    if snapshot.active_listening is not None:
        parts.append(f"listening: {snapshot.active_listening.label}")
    if snapshot.translation_in_flight:
        parts.append("translating")
    parts.append(f"{len(snapshot.transcript)} line(s)")
    return " | ".join(parts)


def transcript_changed(shown: Sequence[TranscriptEntry], latest: Sequence[TranscriptEntry]) -> bool:
    return tuple(shown) != tuple(latest)


if QtWidgets is not None:
    class SpeakerPanel(QtWidgets.QFrame):
        def __init__(self, slot: Speaker, catalog: LanguageCatalog, parent: QtWidgets.QWidget | None = None) -> None:
            super().__init__(parent)
            self.slot = slot
            self.setObjectName("card")
            lay = QtWidgets.QVBoxLayout(self)
            lay.setContentsMargins(14, 12, 14, 12)
            lay.setSpacing(8)

            head = QtWidgets.QHBoxLayout()
            title = QtWidgets.QLabel(slot.label, self)
            title.setObjectName("subhead")
            self.language = QtWidgets.QComboBox(self)
            for option in catalog.list_languages():
                self.language.addItem(option.label, option.code)
            head.addWidget(title)
            head.addStretch(1)
            head.addWidget(self.language)
            lay.addLayout(head)

            self.text = QtWidgets.QPlainTextEdit(self)
            self.text.setPlaceholderText(f"Type or speak for {slot.label}")
            self.text.setMinimumHeight(90)
            lay.addWidget(self.text)

            row = QtWidgets.QHBoxLayout()
            self.btn_mic = QtWidgets.QPushButton(mic_button_text(False), self)
            self.btn_translate = QtWidgets.QPushButton(translate_button_text(False), self)
            self.btn_translate.setObjectName("primary")
            row.addWidget(self.btn_mic)
            row.addStretch(1)
            row.addWidget(self.btn_translate)
            lay.addLayout(row)

        def show_language(self, code: str) -> None:
            idx = self.language.findData(code)
            if idx < 0 or idx == self.language.currentIndex():
                return
            self.language.blockSignals(True)
            self.language.setCurrentIndex(idx)
            self.language.blockSignals(False)

        def show_text(self, text: str) -> None:
            if self.text.toPlainText() == text:
                return
            self.text.blockSignals(True)
            self.text.setPlainText(text)
            self.text.moveCursor(QtGui.QTextCursor.MoveOperation.End)
            self.text.blockSignals(False)

    class ConversationWindow(QtWidgets.QMainWindow):
        language_changed = QtCore.pyqtSignal(object, str)
        text_edited = QtCore.pyqtSignal(object, str)
        translate_requested = QtCore.pyqtSignal(object)
        listen_requested = QtCore.pyqtSignal(object)
        swap_requested = QtCore.pyqtSignal()
        entry_activated = QtCore.pyqtSignal(object)
        copy_requested = QtCore.pyqtSignal()
        clear_requested = QtCore.pyqtSignal()

        def __init__(self, catalog: LanguageCatalog) -> None:
            super().__init__()
            self.setWindowTitle("VaaniConnect")
            self.resize(820, 640)
            self._catalog = catalog
            self._entries: tuple[TranscriptEntry, ...] = ()

            root = QtWidgets.QWidget(self)
            self.setCentralWidget(root)
            lay = QtWidgets.QVBoxLayout(root)
            lay.setContentsMargins(22, 20, 22, 20)
            lay.setSpacing(14)

            title = QtWidgets.QLabel("VaaniConnect", root)
            title.setObjectName("title")
            lay.addWidget(title)

            self.status_label = QtWidgets.QLabel("", root)
            self.status_label.setObjectName("status")
            self.status_label.setWordWrap(True)
            lay.addWidget(self.status_label)

            panels = QtWidgets.QHBoxLayout()
            panels.setSpacing(10)
            self.panels: dict[Speaker, SpeakerPanel] = {
                Speaker.SPEAKER1: SpeakerPanel(Speaker.SPEAKER1, catalog, root),
                Speaker.SPEAKER2: SpeakerPanel(Speaker.SPEAKER2, catalog, root),
            }
            self.btn_swap = QtWidgets.QPushButton("Swap", root)
            panels.addWidget(self.panels[Speaker.SPEAKER1], 1)
            panels.addWidget(self.btn_swap, 0, QtCore.Qt.AlignmentFlag.AlignVCenter)
            panels.addWidget(self.panels[Speaker.SPEAKER2], 1)
            lay.addLayout(panels)

            transcript_title = QtWidgets.QLabel("Conversation (click a line to hear it)", root)
            transcript_title.setObjectName("subhead")
            lay.addWidget(transcript_title)
            self.transcript = QtWidgets.QListWidget(root)
            self.transcript.setWordWrap(True)
            lay.addWidget(self.transcript, 1)

            btn_row = QtWidgets.QHBoxLayout()
            btn_row.setSpacing(10)
            self.btn_copy = QtWidgets.QPushButton("Copy", root)
            self.btn_clear = QtWidgets.QPushButton("Clear", root)
            btn_row.addStretch(1)
            btn_row.addWidget(self.btn_copy)
            btn_row.addWidget(self.btn_clear)
            lay.addLayout(btn_row)

            for slot, panel in self.panels.items():
                panel.language.currentIndexChanged.connect(
                    lambda _idx, s=slot, p=panel: self.language_changed.emit(s, str(p.language.currentData()))
                )
                panel.text.textChanged.connect(
                    lambda s=slot, p=panel: self.text_edited.emit(s, p.text.toPlainText())
                )
                panel.btn_translate.clicked.connect(lambda _checked=False, s=slot: self.translate_requested.emit(s))
                panel.btn_mic.clicked.connect(lambda _checked=False, s=slot: self.listen_requested.emit(s))
            self.btn_swap.clicked.connect(self.swap_requested.emit)
            self.btn_copy.clicked.connect(self.copy_requested.emit)
            self.btn_clear.clicked.connect(self._on_clear_clicked)
            self.transcript.itemClicked.connect(self._on_item_clicked)

            self.setStyleSheet(
                """
                QMainWindow { background: #121416; color: #e8ecef; }
                QLabel { color: #e8ecef; }
                QLabel#title { font-size: 28px; font-weight: 700; letter-spacing: 0.3px; }
                QLabel#status { color: #a7b0b8; font-size: 13px; }
                QLabel#subhead { color: #b8c1c8; font-size: 12px; font-weight: 600; }
                QFrame#card {
                    background: #1a1e22;
                    border: 1px solid #2a3138;
                    border-radius: 14px;
                }
                QPlainTextEdit, QListWidget, QComboBox {
                    background: #13181d;
                    border: 1px solid #2f3740;
                    border-radius: 8px;
                    color: #e7edf3;
                    font-size: 14px;
                    padding: 4px;
                }
                QListWidget::item { padding: 6px; }
                QListWidget::item:hover { background: #22272d; }
                QPushButton {
                    background: #22272d;
                    border: 1px solid #313840;
                    border-radius: 10px;
                    color: #e7edf3;
                    padding: 8px 14px;
                    font-size: 13px;
                    font-weight: 600;
                }
                QPushButton:hover { background: #2a3037; }
                QPushButton#primary {
                    background: #c8f25f;
                    color: #172005;
                    border-color: #c8f25f;
                }
                QPushButton#primary:hover { background: #d3f67f; border-color: #d3f67f; }
                """
            )

        def _on_clear_clicked(self) -> None:
            answer = QtWidgets.QMessageBox.question(
                self,
                "Clear conversation",
                "Clear the whole conversation?",
                QtWidgets.QMessageBox.StandardButton.Yes | QtWidgets.QMessageBox.StandardButton.No,
                QtWidgets.QMessageBox.StandardButton.No,
            )
            if answer == QtWidgets.QMessageBox.StandardButton.Yes:
                self.clear_requested.emit()

        def _on_item_clicked(self, item: QtWidgets.QListWidgetItem) -> None:
            row = self.transcript.row(item)
            if 0 <= row < len(self._entries):
                self.entry_activated.emit(self._entries[row])

        def apply_snapshot(self, snapshot: SessionSnapshot) -> None:
            for slot, panel in self.panels.items():
                panel.show_language(snapshot.language_of(slot))
                # Keep local keystrokes that have not round-tripped yet.
                if not panel.text.hasFocus() or snapshot.active_listening is slot:
                    panel.show_text(snapshot.text_of(slot))
                panel.btn_mic.setText(mic_button_text(snapshot.active_listening is slot))
                panel.btn_translate.setText(translate_button_text(snapshot.translation_in_flight))
            if transcript_changed(self._entries, snapshot.transcript):
                self._entries = tuple(snapshot.transcript)
                self.transcript.clear()
                for entry in self._entries:
                    self.transcript.addItem(format_entry(entry))
                self.transcript.scrollToBottom()
            self.status_label.setText(status_text(snapshot, self._catalog))

        def show_notice(self, title: str, message: str, level: str = "warning") -> None:
            if level == "info":
                QtWidgets.QMessageBox.information(self, title, message)
            elif level == "error":
                QtWidgets.QMessageBox.critical(self, title, message)
            else:
                QtWidgets.QMessageBox.warning(self, title, message)
else:
    class ConversationWindow:
        def __init__(self, catalog: LanguageCatalog) -> None:
            raise ModuleNotFoundError(
                "PyQt6 is required for ConversationWindow. Install with: python -m pip install PyQt6"
            ) from _PYQT_IMPORT_ERROR
