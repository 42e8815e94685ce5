from typing import Iterable, List, Sequence

from .models import Message


def smooth_values(values: Sequence[float], k: int) -> List[float]:
    # trailing window: positions before k-1 don't have enough history and pass through
    if not isinstance(k, int) or isinstance(k, bool) or k <= 0:
        raise ValueError(f"window size must be a positive integer, got {k!r}")

    out: List[float] = []
    for i, v in enumerate(values):
        if i < k - 1:
            out.append(float(v))
        else:
            window = values[i - k + 1:i + 1]
            out.append(sum(window) / k)
    return out


def moving_average(batch: Iterable[Message], k: int) -> List[float]:
    """Simple moving average over a batch, ordered by sequence number.

    Arrival order doesn't matter; the batch is sorted here, not at receive time.
    """
    ordered = sorted(batch, key=lambda m: m.seq_num)
    return smooth_values([m.value for m in ordered], k)
