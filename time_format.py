import math


def format_clock(seconds: float) -> str:
    """MM:SS, floor-truncated to whole seconds and clamped at 00:00."""
    if seconds is None or math.isnan(seconds) or seconds <= 0:
        return "00:00"
    total = int(math.floor(seconds))
    minutes, secs = divmod(total, 60)
    return f"{minutes:02d}:{secs:02d}"


def format_remaining_time(remaining_seconds: float) -> str:
    """Format remaining seconds into a readable string."""
    if remaining_seconds <= 0:
        return "0 seconds"

    remaining_seconds = int(remaining_seconds)
    days = remaining_seconds // 86400
    hours = (remaining_seconds % 86400) // 3600
    minutes = (remaining_seconds % 3600) // 60
    seconds = remaining_seconds % 60

    parts = []
    if days > 0:
        parts.append(f"{days} day{'s' if days > 1 else ''}")
    if hours > 0:
        parts.append(f"{hours} hour{'s' if hours > 1 else ''}")
    if minutes > 0:
        parts.append(f"{minutes} minute{'s' if minutes > 1 else ''}")
    if seconds > 0:
        parts.append(f"{seconds} second{'s' if seconds > 1 else ''}")

    if len(parts) > 1:
        return ", ".join(parts[:-1]) + f" and {parts[-1]}"
    return parts[0] if parts else "0 seconds"
