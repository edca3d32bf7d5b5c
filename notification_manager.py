import asyncio
import logging
import subprocess
import sys
from pathlib import Path
from typing import Optional

from desktop_notifier import DesktopNotifier, Icon

logger = logging.getLogger(__name__)

APP_NAME = "Beta Trial"

_notifier: Optional[DesktopNotifier] = None


def _get_notifier() -> DesktopNotifier:
    # Created on first use; the platform backend is not always available at import time
    global _notifier
    if _notifier is None:
        _notifier = DesktopNotifier(app_name=APP_NAME)
    return _notifier


async def send_safe_notification(title: str, message: str, icon_path: Optional[Path] = None,
                                 timeout: float = 10.0) -> bool:
    """
    Send a desktop notification. Returns False instead of raising when the
    platform backend fails or times out.
    """
    icon = None
    if icon_path and icon_path.exists() and icon_path.suffix.lower() in ['.ico', '.png', '.jpg', '.jpeg']:
        icon = Icon(path=icon_path)

    try:
        await asyncio.wait_for(_get_notifier().send(title=title, message=message, icon=icon), timeout=timeout)
        logger.info(f"Notification sent successfully: {title}")
        return True
    except asyncio.TimeoutError:
        logger.error("Notification send timed out")
        return False
    except Exception as send_error:
        logger.error(f"Failed to send notification: {send_error}")

    if icon is not None:
        logger.info("Attempting to send notification without icon...")
        try:
            await asyncio.wait_for(_get_notifier().send(title=title, message=message), timeout=timeout / 2)
            logger.info("Notification sent successfully (without icon)")
            return True
        except Exception as fallback_error:
            logger.error(f"Fallback notification also failed: {fallback_error}")
    return False


def show_system_notification_fallback(title: str, message: str) -> bool:
    """Notify through the platform's command line tool, or the log as a last resort."""
    try:
        if sys.platform == "darwin":
            subprocess.run(["osascript", "-e", f'display notification "{message}" with title "{title}"'],
                           check=True, timeout=10)
            return True
        if sys.platform.startswith("linux"):
            subprocess.run(["notify-send", title, message], check=True, timeout=10)
            return True
    except (subprocess.CalledProcessError, subprocess.TimeoutExpired, FileNotFoundError) as e:
        logger.error(f"System notification fallback failed: {e}")

    logger.warning(f"NOTIFICATION: {title} - {message}")
    return False
