"""
Stack trace producer.

Used by the emitter to append a trace to every FATAL record. Each line
has the form ``  FILE:LINE FUNCTION``, innermost frame first, so a FATAL
raised from inside a wrapped command shows the executor frame followed
by the caller that opened the critical section.
"""

import traceback
from typing import List


def produce_trace(skip_frames: int = 0) -> List[str]:
    """Return formatted frames of the current call stack.

    Args:
        skip_frames: Number of innermost caller frames to omit
            (1 drops the caller itself).

    Returns:
        Lines like '  /path/to/script.py:42 main', innermost first.
    """
    # Drop this function's own frame as well
    frames = traceback.extract_stack()[:-(skip_frames + 1)]
    return [f"  {frame.filename}:{frame.lineno} {frame.name}"
            for frame in reversed(frames)]
