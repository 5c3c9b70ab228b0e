"""Bounded fixed-interval polling."""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Awaitable, Callable

Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class PollPolicy:
    interval: float = 3.0
    max_attempts: int = 60
    sleep: Sleep = field(default=asyncio.sleep, compare=False, repr=False)

    def __post_init__(self):
        if self.interval < 0:
            raise ValueError("interval must be >= 0")
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")

    async def wait(self) -> None:
        await self.sleep(self.interval)
