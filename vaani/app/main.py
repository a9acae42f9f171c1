from __future__ import annotations

import collections
import concurrent.futures
import signal
import sys

from vaani.app.config import resolve_args, save_user_config
from vaani.app.logging_setup import setup_app_logger
from vaani.app.runner import SessionRunner
from vaani.app.services import ConversationServices, build_conversation_services
from vaani.conversation.session import ConversationSession
from vaani.errors import ClipboardWriteError, SpeechUnavailableError
from vaani.interfaces import Clipboard
from vaani.speech.mic import SoundDeviceMicSource
from vaani.ui.bridge import Notice, SessionBus, drain_session_bus
from vaani.ui.clipboard_qt import QtClipboard


def _speaker_defaults(services: ConversationServices) -> tuple[str, str]:
    s1, s2 = services.speaker1_language, services.speaker2_language
    catalog = services.catalog
    if catalog.is_supported(s1) and catalog.is_supported(s2) and s1 != s2:
        return s1, s2
    codes = catalog.codes()
    return codes[0], codes[1] if len(codes) > 1 else codes[0]


def main(argv: list[str] | None = None) -> int:
    args = resolve_args(argv)
    logger, _, log_path = setup_app_logger(debug=bool(args.debug))
    logger.info("app_start", extra={"config_path": str(getattr(args, "config", "")), "argv": argv or []})

    if args.list_devices:
        try:
            print(SoundDeviceMicSource.list_devices())
        except SpeechUnavailableError as e:
            print(e)
            return 1
        return 0

    try:
        services = build_conversation_services(args, logger)
        speaker1, speaker2 = _speaker_defaults(services)
        if (speaker1, speaker2) != (services.speaker1_language, services.speaker2_language):
            logger.warning(
                "speaker_defaults_replaced",
                extra={"configured": [services.speaker1_language, services.speaker2_language]},
            )
    except (KeyError, ValueError) as e:
        logger.error("invalid_config", extra={"detail": str(e)})
        print(f"Invalid configuration: {e}")
        return 2

    from PyQt6 import QtCore, QtWidgets
    from vaani.speech.qt_output import QtSpeechOutput
    from vaani.ui.conversation_qt import ConversationWindow

    class _Relay(QtCore.QObject):
        copy_ready = QtCore.pyqtSignal(str)

    app = QtWidgets.QApplication(sys.argv)

    speech_output = None
    try:
        speech_output = QtSpeechOutput(app)
    except SpeechUnavailableError as e:
        logger.warning("speech_output_unavailable", extra={"detail": str(e)})

    bus = SessionBus(maxsize=max(1, int(args.queue_maxsize)))
    runner = SessionRunner(bus, logger=logger)
    services.speech_input.dispatch = runner.dispatch
    try:
        session = ConversationSession(
            services.translator,
            catalog=services.catalog,
            speech_input=services.speech_input,
            speech_output=speech_output,
            speaker1_language=speaker1,
            speaker2_language=speaker2,
            on_change=runner.publish,
            on_error=runner.report,
            logger=logger,
        )
    except ValueError as e:
        logger.error("invalid_config", extra={"detail": str(e)})
        print(f"Invalid configuration: {e}")
        return 2

    window = ConversationWindow(services.catalog)
    clipboard: Clipboard = QtClipboard()
    relay = _Relay()
    pending_notices: "collections.deque[Notice]" = collections.deque()
    notice_open = False

    def _copy_to_clipboard(text: str) -> None:
        try:
            clipboard.write(text)
        except ClipboardWriteError as e:
            logger.warning("copy_failed", extra={"detail": str(e)})
            pending_notices.append(Notice(title=e.title, message=str(e)))
            return
        logger.info("transcript_copied", extra={"chars": len(text)})
        pending_notices.append(Notice(title="Copy conversation", message="Conversation copied.", level="info"))

    relay.copy_ready.connect(_copy_to_clipboard)

    window.language_changed.connect(lambda slot, code: runner.call(session.set_language, slot, code))
    window.text_edited.connect(lambda slot, text: runner.call(session.set_pending_text, slot, text))
    window.translate_requested.connect(lambda slot: runner.submit(session.translate, slot))
    window.listen_requested.connect(lambda slot: runner.call(session.listen, slot))
    window.swap_requested.connect(lambda: runner.call(session.swap_languages))
    window.entry_activated.connect(lambda entry: runner.call(session.speak_entry, entry))
    window.copy_requested.connect(lambda: runner.call(session.copy_transcript, on_result=relay.copy_ready.emit))
    window.clear_requested.connect(lambda: runner.call(session.clear_transcript))

    timer = QtCore.QTimer()

    def _on_tick() -> None:
        nonlocal notice_open
        latest, notices = drain_session_bus(bus, max(1, int(args.max_updates_per_tick)))
        if latest is not None:
            window.apply_snapshot(latest)
        pending_notices.extend(notices)
        # Message boxes spin a nested event loop that re-enters this tick.
        if notice_open or not pending_notices:
            return
        notice = pending_notices.popleft()
        notice_open = True
        try:
            window.show_notice(notice.title, notice.message, notice.level)
        finally:
            notice_open = False

    timer.timeout.connect(_on_tick)
    timer.start(max(10, int(args.poll_ms)))

    def _on_about_to_quit() -> None:
        logger.info("app_quit")
        timer.stop()
        services.speech_input.stop()
        try:
            snap = runner.call(session.snapshot).result(timeout=1.0)
            saved = save_user_config(
                {"speaker1_language": snap.speaker1_language, "speaker2_language": snap.speaker2_language},
                config_path=args.config,
            )
            logger.info("languages_saved", extra={"config_path": str(saved)})
        except (concurrent.futures.TimeoutError, OSError, ValueError) as e:
            logger.warning("languages_save_failed", extra={"detail": str(e)})
        runner.stop()
        services.translator.close()

    app.aboutToQuit.connect(_on_about_to_quit)
    signal.signal(signal.SIGINT, lambda *_: app.quit())

    runner.start()
    runner.call(session.snapshot, on_result=runner.publish)
    window.show()

    print("VaaniConnect ready.")
    print(f"Logs: {log_path}")
    return app.exec()


if __name__ == "__main__":
    raise SystemExit(main())
