"""BlockTimeResolver: batched height -> timestamp lookups for one reconciliation pass."""

import asyncio
import logging
from typing import Awaitable, Callable, Iterable

from wallethistory.exceptions import AdapterError, NotFound

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 5


class BlockTimeResolver:
    """Deduplicates heights and runs at most `concurrency` lookups at a time.

    Results are memoized on the instance, so build one resolver per pass. A failed
    lookup is left out of the mapping and never fails the batch.
    """

    def __init__(
        self,
        fetch_block_time: Callable[[int], Awaitable[int]],
        concurrency: int = DEFAULT_CONCURRENCY,
        timeout: float = 15.0,
    ) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be >= 1")
        self._fetch = fetch_block_time
        self._concurrency = concurrency
        self._timeout = timeout
        self._memo: dict[int, int] = {}
        self._failed: set[int] = set()

    async def resolve(self, heights: Iterable[int | None]) -> dict[int, int]:
        requested = {h for h in heights if h is not None}
        todo = sorted(h for h in requested if h not in self._memo and h not in self._failed)

        if todo:
            semaphore = asyncio.Semaphore(self._concurrency)

            async def lookup(height: int) -> None:
                async with semaphore:
                    try:
                        timestamp = await asyncio.wait_for(self._fetch(height), self._timeout)
                    except NotFound:
                        logger.debug("Block %d not indexed yet", height)
                        self._failed.add(height)
                    except asyncio.TimeoutError:
                        logger.warning("Block time lookup for %d timed out", height)
                        self._failed.add(height)
                    except (AdapterError, KeyError, ValueError) as e:
                        logger.warning("Block time lookup for %d failed: %s", height, e)
                        self._failed.add(height)
                    else:
                        self._memo[height] = timestamp

            await asyncio.gather(*(lookup(h) for h in todo))
            logger.debug("Resolved %d/%d block times", len(self._memo), len(requested))

        return {h: self._memo[h] for h in requested if h in self._memo}
