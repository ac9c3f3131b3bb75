from __future__ import annotations

"""Entry point for the headless Focus Flow runner.

Wires the SQLite store, the flow metrics repository and the session engine,
then drives the engine from a one-second Qt timer until the cycle plan is
finished or the process is interrupted.
"""

import argparse
import logging
import signal
import sys
from pathlib import Path

from PyQt6.QtCore import QCoreApplication, Qt, QTimer

from focusflow.core.config import SETTINGS_KEY, EngineConfig
from focusflow.core.engine import SessionEngine
from focusflow.core.timer import TimerSnapshot, TimerStatus
from focusflow.data.repository import FlowMetricsRepository
from focusflow.data.storage import Storage


logger = logging.getLogger("focusflow")

TICK_INTERVAL_MS = 1000


def default_db_path() -> Path:
    return Path.cwd() / "focusflow.db"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="focusflow", description="Run focus sessions from the terminal.")
    parser.add_argument("--db", type=Path, default=default_db_path(), help="SQLite file for metrics and settings")
    parser.add_argument("--work", type=int, help="focus block length in minutes")
    parser.add_argument("--break", dest="break_minutes", type=int, help="break length in minutes")
    parser.add_argument("--cycles", type=int, help="focus/break pairs per plan")
    parser.add_argument("--auto-break", action="store_true", default=None, help="start the next focus block after a break")
    parser.add_argument("--no-auto-break", dest="auto_break", action="store_false", default=None, help="wait for start after a break")
    parser.add_argument("--adaptive", action="store_true", default=None, help="adapt focus length to flow intensity")
    parser.add_argument("--no-adaptive", dest="adaptive", action="store_false", default=None, help="always use the configured focus length")
    parser.add_argument("--notifications", dest="notifications", action="store_true", default=None, help="request notifications")
    parser.add_argument("--no-notifications", dest="notifications", action="store_false", default=None, help="do not request notifications")
    parser.add_argument("--export", action="store_true", help="print flow metrics as JSON and exit")
    parser.add_argument("--reset-metrics", action="store_true", help="zero all flow metrics and exit")
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser


def config_from_args(args: argparse.Namespace, stored: EngineConfig) -> EngineConfig:
    settings = stored.to_settings()
    overrides = {
        "work_duration_minutes": args.work,
        "break_duration_minutes": args.break_minutes,
        "total_cycles": args.cycles,
        "auto_break_enabled": args.auto_break,
        "adaptive_sessions": args.adaptive,
        "notifications_enabled": args.notifications,
    }
    settings.update({key: value for key, value in overrides.items() if value is not None})
    return EngineConfig(**settings).validate()


def connect_logging(engine: SessionEngine) -> None:
    engine.flow_session_started.connect(lambda: logger.info("Focus session started"))
    engine.flow_session_completed.connect(lambda minutes: logger.info("Focus session completed (%d min)", minutes))
    engine.break_started.connect(lambda: logger.info("Break started"))
    engine.break_completed.connect(lambda minutes: logger.info("Break completed (%d min)", minutes))
    engine.notification_requested.connect(lambda title, body: print(f"\n[{title}] {body}"))


def render(snapshot: TimerSnapshot) -> None:
    minutes, seconds = divmod(snapshot.remaining_seconds, 60)
    sys.stdout.write(
        f"\r{snapshot.phase.value:<5} {minutes:02d}:{seconds:02d}  "
        f"cycle {snapshot.current_cycle}/{snapshot.total_cycles}  {snapshot.status.value:<13}"
    )
    sys.stdout.flush()


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])

    storage = Storage(args.db)
    storage.init_db()
    try:
        config = config_from_args(args, EngineConfig.from_settings(storage.get_setting(SETTINGS_KEY, {})))
    except ValueError as exc:
        logger.error("Invalid configuration: %s", exc)
        return 2
    storage.set_setting(SETTINGS_KEY, config.to_settings())

    engine = SessionEngine(FlowMetricsRepository(storage), config)
    engine.load()

    if args.reset_metrics:
        engine.reset_metrics()
        engine.flush()
        logger.info("Flow metrics reset")
        return 0
    if args.export:
        print(engine.export_flow_data())
        engine.flush()
        return 0

    connect_logging(engine)
    engine.timer_state_changed.connect(render)

    def on_state(snapshot: TimerSnapshot) -> None:
        if snapshot.status == TimerStatus.IDLE:
            if snapshot.current_cycle == 1:
                app.quit()
            else:
                engine.start()

    # Queued so the restart happens after the completing operation returns.
    engine.timer_state_changed.connect(on_state, type=Qt.ConnectionType.QueuedConnection)

    ticker = QTimer()
    ticker.setInterval(TICK_INTERVAL_MS)
    ticker.timeout.connect(engine.tick)
    ticker.start()

    signal.signal(signal.SIGINT, lambda *_: app.quit())
    engine.start()
    code = app.exec()

    ticker.stop()
    engine.stop()
    engine.flush()
    print()
    logger.info("Shutting down")
    return code


if __name__ == "__main__":
    raise SystemExit(main())
