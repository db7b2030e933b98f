"""
Client utilities.

- timers: delayed and periodic callbacks for timeouts and heartbeats
- frame_logging: frame descriptions for debug logging
"""

from stompwire.utilities.timers import LoopScheduler, Scheduler, TimerHandle

__all__ = [
    "LoopScheduler",
    "Scheduler",
    "TimerHandle",
]
