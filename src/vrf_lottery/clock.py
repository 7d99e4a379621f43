from __future__ import annotations


class ManualClock:
    """Virtual clock for simulations; time only moves when advanced."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = float(start)

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        if seconds < 0:
            raise ValueError(f"Cannot move a clock backwards: {seconds}")
        self.now += seconds
        return self.now
