"""
Beta Channel Detection
Probes answering "is this build distributed through the beta channel?".

Any zero-argument callable returning a bool works as a probe; the classes
here are the defaults used by run.py and trial_cleanup.py.
"""

import os
import logging
from pathlib import Path
from typing import Callable, Optional

logger = logging.getLogger(__name__)

ChannelProbe = Callable[[], bool]

_TRUTHY = ("1", "true", "yes", "on", "beta")


class EnvironmentChannelProbe:
    """Reads a flag from the environment (BETA_CHANNEL by default)."""

    def __init__(self, variable: str = "BETA_CHANNEL"):
        self.variable = variable

    def __call__(self) -> bool:
        return os.getenv(self.variable, "").strip().lower() in _TRUTHY


class ReceiptChannelProbe:
    """
    Beta builds ship a sandbox receipt but no embedded provisioning profile.
    A development build carries the profile, a store build has a production
    receipt, so both read as not-beta.
    """

    def __init__(self, bundle_dir: str, receipt_name: str = "sandboxReceipt",
                 provision_name: str = "embedded.mobileprovision"):
        self.bundle_dir = Path(bundle_dir)
        self.receipt_name = receipt_name
        self.provision_name = provision_name

    def __call__(self) -> bool:
        try:
            has_receipt = (self.bundle_dir / self.receipt_name).is_file()
            has_provision = (self.bundle_dir / self.provision_name).is_file()
        except OSError as e:
            logger.warning(f"Channel probe could not inspect {self.bundle_dir}: {e}")
            return False
        return has_receipt and not has_provision


def never_in_channel() -> bool:
    return False


def default_probe(bundle_dir: Optional[str] = None) -> ChannelProbe:
    if bundle_dir:
        return ReceiptChannelProbe(bundle_dir)
    return EnvironmentChannelProbe()
