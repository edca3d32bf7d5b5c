"""
Beta Trial demo
Runs a live trial countdown in the console or in a small window.

    python run.py --duration 30 --password secret --simulate
    python run.py --gui --simulate
"""

import argparse
import logging
import sys
import time

from audit_logger import setup_logging
from time_format import format_clock
from trial_config import TrialConfiguration
from trial_events import CountdownPaused, CountdownResumed, StateChanged, TimeUpdated, TrialEventBus, TrialExpired
from trial_manager import BetaTrialManager
from trial_notification import TrialNotifier
from trial_state import AccessTier

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Beta trial countdown demo")
    parser.add_argument('--duration', type=float, default=None, help='Trial duration in seconds.')
    parser.add_argument('--password', default=None, help='Beta code that unlocks the trial.')
    parser.add_argument('--suite', default=None, help='Name of the persistence partition.')
    parser.add_argument('--simulate', action='store_true', help='Pretend the build comes from the beta channel.')
    parser.add_argument('--gui', action='store_true', help='Show the status window instead of console output.')
    parser.add_argument('--notify', action='store_true', help='Send desktop notifications.')
    parser.add_argument('--log-file', default=None, help='Also write the log to this file.')
    return parser


def config_from_args(args) -> TrialConfiguration:
    base = TrialConfiguration.from_env()
    return TrialConfiguration(
        trial_duration=args.duration if args.duration else base.trial_duration,
        password=args.password if args.password is not None else base.password,
        suite_name=args.suite or base.suite_name,
        simulation_mode=args.simulate or base.simulation_mode,
    )


def print_event(event):
    if isinstance(event, TimeUpdated):
        print(f"\rTrial Mode ({format_clock(event.remaining_time)})", end="", flush=True)
    elif isinstance(event, StateChanged):
        print(f"\nState: {event.previous.value} -> {event.next.value}")
    elif isinstance(event, TrialExpired):
        print("\nTrial expired.")
    elif isinstance(event, CountdownPaused):
        print("\nCountdown paused.")
    elif isinstance(event, CountdownResumed):
        print(f"\nCountdown resumed (total paused: {format_clock(event.total_paused_duration)}).")


def run_console(manager: BetaTrialManager):
    print(manager.status_description())
    try:
        while manager.current_tier == AccessTier.TRIAL:
            time.sleep(0.5)
    except KeyboardInterrupt:
        manager.pause_countdown()
        print("\nInterrupted.")
    finally:
        manager.shutdown()
    print(manager.status_description())


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(log_file=args.log_file, level=logging.WARNING if not args.gui else logging.INFO)

    events = TrialEventBus()
    if not args.gui:
        events.subscribe(print_event)
    if args.notify:
        TrialNotifier(events)

    manager = BetaTrialManager(config_from_args(args), event_bus=events)
    manager.resume_countdown()

    if args.gui:
        from trial_dialogs import TrialStatusWindow
        window = TrialStatusWindow(manager)
        window.mainloop()
        manager.shutdown()
    else:
        run_console(manager)
    return 0


if __name__ == "__main__":
    sys.exit(main())
