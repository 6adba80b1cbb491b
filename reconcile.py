import asyncio
import datetime
import logging
import time

from concurrent.futures     import ThreadPoolExecutor
from decimal                import Decimal
from time                   import perf_counter
from typing                 import Callable, NamedTuple, Sequence

from contracts.staking_pool import ChainReadError
from registry               import TokenEntry
from store                  import StoreError

STATUS_CREATED = 'created'
STATUS_UPDATED = 'updated'
STATUS_FAILED  = 'failed'

class EntryResult(NamedTuple):
    token_key:     str
    token_address: str
    status:        str
    error:         str | None = None

class CycleReport(NamedTuple):
    results: list[EntryResult]

    @property
    def failed(self) -> list[EntryResult]:
        return [r for r in self.results if r.status == STATUS_FAILED]

    def as_dict(self) -> dict:
        return {
            r.token_key: {'status': r.status, 'token_address': r.token_address, 'error': r.error}
            for r in self.results
        }


def date_now_str() -> str:
    result = datetime.datetime.now().strftime('%Y-%m-%d %H:%M:%S.%f')[:-3]
    return result


def format_units(units: int, decimals: int) -> str:
    """
    Formats an atomic token amount to `decimals` decimal places.  The conversion is lossless (i.e.
    it does not use floating point math or involve any truncation or rounding).
    """
    base = 10**decimals
    frac = units % base
    frac = "" if frac == 0 else f".{frac:0{decimals}d}".rstrip("0")
    return f"{units // base}{frac}"


class Reconciler:
    """
    Brings the persisted staking records in line with the chain, one record per registry entry.

    The registry, chain reader and store are injected; the reader needs a
    `read_staking_snapshot(address)` method and the store an `upsert(key, fields)` method.
    """

    def __init__(self, registry: Sequence[TokenEntry], reader, store,
                 logger: logging.Logger | None = None,
                 clock: Callable[[], float] = time.time,
                 slow_cycle_seconds: float = 60):
        self.registry           = tuple(registry)
        self.reader             = reader
        self.store              = store
        self.logger             = logger or logging.getLogger(__name__)
        self.clock              = clock
        self.slow_cycle_seconds = slow_cycle_seconds

    def reconcile_one(self, entry: TokenEntry) -> EntryResult:
        """
        Reads the staking contract of `entry` and upserts the normalised snapshot.  Chain and store
        failures are logged against the token and reported in the result, never raised.
        """
        try:
            snapshot = self.reader.read_staking_snapshot(entry.staking_address)
        except ChainReadError as e:
            self.logger.error("{} Error reading staking data for {}: {}".format(date_now_str(), entry.token_key, e))
            return EntryResult(entry.token_key, entry.token_address, STATUS_FAILED, str(e))

        now    = self.clock()
        fields = {
            'staking_address': entry.staking_address,
            'token_name':      entry.token_name,
            'project_name':    entry.project_name,
            'chain':           entry.chain,
            'is_stablecoin':   entry.is_stablecoin,
            'categories':      list(entry.categories),
            'logo_url':        entry.logo_url,
            'decimals':        entry.decimals,
            'created_at':      now,
            'apy':             int(snapshot.apy_raw),
            'tvl':             Decimal(format_units(snapshot.total_staked_raw, entry.decimals)),
            'updated_at':      now,
        }

        try:
            created = self.store.upsert(entry.token_address, fields)
        except StoreError as e:
            self.logger.error("{} Error storing staking data for {}: {}".format(date_now_str(), entry.token_key, e))
            return EntryResult(entry.token_key, entry.token_address, STATUS_FAILED, str(e))

        self.logger.info("{} {} staking data for {} (apy: {}, tvl: {})".format(
                         date_now_str(),
                         "Created" if created else "Updated",
                         entry.token_key,
                         fields['apy'],
                         fields['tvl']))
        return EntryResult(entry.token_key, entry.token_address, STATUS_CREATED if created else STATUS_UPDATED)

    async def _reconcile_entries(self) -> list[EntryResult]:
        results = []
        if not self.registry:
            return results

        loop = asyncio.get_running_loop()
        with ThreadPoolExecutor(max_workers=len(self.registry)) as executor:
            futures = {
                asyncio.ensure_future(loop.run_in_executor(executor, self.reconcile_one, entry)): entry
                for entry in self.registry
            }
            for future in asyncio.as_completed(futures):
                try:
                    # This will raise an exception if the thread raised an exception
                    results.append(await future)
                except Exception as e:
                    self.logger.exception("Unexpected error in reconciliation thread: {}".format(e))

        # Entries whose thread blew up are still reported; `as_completed` loses the mapping back to
        # the entry, so recover it from the futures that finished with an exception.
        for future, entry in futures.items():
            if not future.cancelled() and future.exception() is not None:
                results.append(EntryResult(entry.token_key, entry.token_address, STATUS_FAILED, str(future.exception())))

        order = {entry.token_key: i for i, entry in enumerate(self.registry)}
        results.sort(key=lambda r: order[r.token_key])
        return results

    def reconcile_all(self) -> CycleReport:
        """
        Runs one reconciliation cycle over the whole registry, one worker thread per entry.  The
        cycle always runs to completion; the report says how each entry fared.
        """
        self.logger.info("{} Reconcile staking data start".format(date_now_str()))
        perf_start = perf_counter()

        report = CycleReport(asyncio.run(self._reconcile_entries()))

        perf_diff = perf_counter() - perf_start
        msg = "{} Reconcile staking data finish, {}/{} failed, took: {} seconds".format(
                date_now_str(), len(report.failed), len(report.results), perf_diff)
        if perf_diff > self.slow_cycle_seconds:
            self.logger.warning(msg)
        else:
            self.logger.info(msg)
        return report
