from datetime import datetime


def relative_time(then_ms: int, now_ms: int) -> str:
    """Short age label for list rows: 'just now', '5m ago', '3h ago', '2d ago'."""
    if then_ms <= 0:
        return ""
    delta_s = max(0, now_ms - then_ms) // 1000
    if delta_s < 60:
        return "just now"
    if delta_s < 3600:
        return f"{delta_s // 60}m ago"
    if delta_s < 86400:
        return f"{delta_s // 3600}h ago"
    return f"{delta_s // 86400}d ago"


def clock_time(epoch_ms: int) -> str:
    """Local wall-clock 'HH:MM' for a millisecond timestamp; '' when unknown."""
    if epoch_ms <= 0:
        return ""
    return datetime.fromtimestamp(epoch_ms / 1000).strftime("%H:%M")
