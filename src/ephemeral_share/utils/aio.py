import asyncio
from functools import partial
from typing import Callable, TypeVar

T = TypeVar("T")


async def run_io_bound(func: Callable[..., T], *args, **kwargs) -> T:
    """Выполняет блокирующую операцию с диском в executor'е по умолчанию."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, partial(func, *args, **kwargs))
