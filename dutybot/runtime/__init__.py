"""Runtime orchestration: the Announce + Watch cycle driver."""
from .cycle_driver import CycleDriver

__all__ = ["CycleDriver"]
