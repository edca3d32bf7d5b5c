"""
Beta Trial developer tool
Inspects and rewrites the trial ledger of a persistence partition.
For development and testing only.

    python trial_cleanup.py status
    python trial_cleanup.py --suite demo simulate expired
    python trial_cleanup.py reset-all
"""

import argparse
import json
import logging
import sys

from audit_logger import setup_logging
from channel_detection import EnvironmentChannelProbe
from tick_scheduler import TickScheduler
from trial_config import TrialConfiguration
from trial_manager import BetaTrialManager
from trial_state import AccessTier
from trial_store import JsonFileStore

logger = logging.getLogger(__name__)

SIMULATED_STATES = {
    "production": AccessTier.PRODUCTION,
    "trial": AccessTier.TRIAL,
    "expired": AccessTier.EXPIRED_TRIAL,
    "beta": AccessTier.BETA,
}


class NoTickScheduler(TickScheduler):
    """The tool exits right away; countdown ticks are never needed."""

    def start(self, interval, callback):
        return object()

    def cancel(self, handle):
        pass


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="""
        *** Beta Trial Developer Tool ***
        Reads and rewrites the persisted trial ledger.
        WARNING: reset commands give the current machine a fresh trial.
        """,
        formatter_class=argparse.RawTextHelpFormatter
    )
    parser.add_argument('--suite', default=None, help='Persistence partition to operate on.')
    parser.add_argument('--directory', default=None, help='Directory holding the store files.')
    parser.add_argument('--duration', type=float, default=None, help='Trial duration in seconds.')
    parser.add_argument('--password', default=None, help='Configured beta code.')
    parser.add_argument('--simulate', action='store_true', help='Treat the build as a beta channel build.')

    commands = parser.add_subparsers(dest='command', required=True)
    commands.add_parser('status', help='Print the ledger and derived state as JSON.')
    commands.add_parser('reset', help='Reset the trial time; unlock status is kept.')
    commands.add_parser('reset-all', help='Clear timing and unlock status.')
    unlock = commands.add_parser('unlock', help='Unlock with the beta code.')
    unlock.add_argument('code')
    commands.add_parser('lock', help='Remove the unlock status.')
    simulate = commands.add_parser('simulate', help='Drive the ledger into a state.')
    simulate.add_argument('state', choices=sorted(SIMULATED_STATES))
    return parser


def build_manager(args) -> BetaTrialManager:
    base = TrialConfiguration.from_env()
    config = TrialConfiguration(
        trial_duration=args.duration or base.trial_duration,
        password=args.password if args.password is not None else base.password,
        suite_name=args.suite or base.suite_name,
        simulation_mode=args.simulate or base.simulation_mode,
    )
    store = JsonFileStore(directory=args.directory, suite_name=config.suite_name)
    return BetaTrialManager(config, store=store, channel_probe=EnvironmentChannelProbe(),
                            scheduler=NoTickScheduler())


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(log_file=None, level=logging.WARNING)
    manager = build_manager(args)

    if args.command == 'reset':
        manager.reset_trial_time()
    elif args.command == 'reset-all':
        manager.reset_all_trial_data()
    elif args.command == 'unlock':
        if not manager.unlock(args.code):
            print("Invalid beta code.")
            return 1
    elif args.command == 'lock':
        manager.lock()
    elif args.command == 'simulate':
        manager.simulate_state(SIMULATED_STATES[args.state])

    print(json.dumps(manager.debug_info(), indent=2))
    manager.shutdown()
    return 0


if __name__ == "__main__":
    sys.exit(main())
