"""
Small helpers shared by the command-line and Qt front ends.

Both front ends report progress as a percentage of the medium and the
GUI also shows a rough time remaining; keeping the arithmetic here
keeps the two consistent and lets it be tested without a display.
"""

from __future__ import annotations

def progress_percent(cur: int, total: int) -> float:
    """Return ``cur`` as a percentage of ``total``.

    A medium of unknown or zero size reports 0%. Values are not clamped
    above 100% because a skipped bad sector at the very end can push
    the cursor past the reported size.
    """
    if total <= 0:
        return 0.0
    return cur / total * 100.0

def format_progress(cur: int, total: int) -> str:
    return f"Progress: {progress_percent(cur, total):.2f}%"

def format_duration(s: int) -> str:
    m, s = divmod(int(s), 60)
    h, m = divmod(m, 60)
    if h:
        return f"{h:d}h {m:02d}m"
    if m:
        return f"{m:d}m {s:02d}s"
    return f"{s:d}s"
