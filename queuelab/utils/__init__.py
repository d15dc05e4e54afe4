from queuelab.utils.clock import Clock, ManualClock, WallClock
from queuelab.utils.ids import IdSequence

__all__ = ["Clock", "ManualClock", "WallClock", "IdSequence"]
