"""Concurrency primitives for fan-out stages."""

from topicsync.core.concurrency.barrier import JoinBarrier, fan_out

__all__ = ["JoinBarrier", "fan_out"]
