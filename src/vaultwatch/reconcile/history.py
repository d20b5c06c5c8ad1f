"""History discovery: recent signatures and transaction details for a holding account.

One scan fetches the newest page of signatures for a token account, claims
each signature in a per-request seen-set (so a transaction referencing both
the wallet's and the vault's account is fetched once), then fetches all
claimed transaction details concurrently as one batch.

The batch is bounded by a wall-clock deadline shared by every scan of the
request. Details that resolved before the deadline are kept; fetches still
in flight are cancelled and the scan is flagged as timed out. Individual
fetch failures are logged and dropped, never raised.
"""

import asyncio
from dataclasses import dataclass, field

from vaultwatch.ledger.client import LedgerClient
from vaultwatch.logging import get_logger
from vaultwatch.models import SignatureRecord, TransactionDetail

logger = get_logger(__name__)


class SeenSignatures:
    """Per-request set of signatures already claimed by a scan.

    Uses asyncio.Lock so concurrent scans cannot both claim one signature.
    """

    def __init__(self) -> None:
        self._seen: set[str] = set()
        self._lock = asyncio.Lock()

    async def claim(self, signature: str) -> bool:
        """Mark a signature as seen. Returns False if it was already claimed."""
        async with self._lock:
            if signature in self._seen:
                return False
            self._seen.add(signature)
            return True

    def __contains__(self, signature: str) -> bool:
        return signature in self._seen

    def __len__(self) -> int:
        return len(self._seen)


@dataclass
class ScanResult:
    """Transaction details fetched for one holding account, newest first."""

    account: str | None
    fetched: list[tuple[SignatureRecord, TransactionDetail]] = field(default_factory=list)
    signatures_seen: int = 0
    timed_out: bool = False


class HistoryScanner:
    """Fetches recent transaction history for holding accounts.

    Args:
        ledger: Ledger data source.
        page_size: Maximum signatures requested per account.
        seen: Seen-set shared by all scans of one request.
    """

    def __init__(
        self,
        ledger: LedgerClient,
        page_size: int,
        seen: SeenSignatures | None = None,
    ) -> None:
        self._ledger = ledger
        self._page_size = page_size
        self._seen = seen if seen is not None else SeenSignatures()

    @property
    def seen(self) -> SeenSignatures:
        return self._seen

    async def scan(self, account: str | None, deadline: float) -> ScanResult:
        """Scan one holding account's recent history.

        Args:
            account: Token account address; None makes the scan a no-op.
            deadline: Absolute event-loop time (loop.time()) after which
                pending detail fetches are abandoned.

        Returns:
            ScanResult with the details that resolved in time.
        """
        result = ScanResult(account=account)
        if account is None:
            return result

        loop = asyncio.get_running_loop()

        try:
            signatures = await asyncio.wait_for(
                self._ledger.get_signatures_for_address(account, self._page_size),
                timeout=max(deadline - loop.time(), 0),
            )
        except asyncio.TimeoutError:
            logger.warning("signature_fetch_timed_out", account=account)
            result.timed_out = True
            return result
        except Exception as exc:
            logger.warning(
                "signature_fetch_failed",
                account=account,
                error=str(exc),
            )
            return result

        signatures = signatures[: self._page_size]
        result.signatures_seen = len(signatures)
        fresh = [r for r in signatures if await self._seen.claim(r.signature)]

        if not fresh:
            logger.debug("no_new_signatures", account=account, total=len(signatures))
            return result

        tasks = {
            asyncio.create_task(self._fetch_detail(record)): record for record in fresh
        }
        done, pending = await asyncio.wait(
            tasks, timeout=max(deadline - loop.time(), 0)
        )

        if pending:
            result.timed_out = True
            for task in pending:
                task.cancel()
            logger.warning(
                "detail_fetch_deadline_exceeded",
                account=account,
                completed=len(done),
                abandoned=len(pending),
            )

        # Preserve newest-first signature order
        for task, record in tasks.items():
            if task not in done:
                continue
            detail = task.result()
            if detail is not None:
                result.fetched.append((record, detail))

        logger.info(
            "history_scanned",
            account=account,
            signatures=len(signatures),
            claimed=len(fresh),
            fetched=len(result.fetched),
            timed_out=result.timed_out,
        )
        return result

    async def _fetch_detail(self, record: SignatureRecord) -> TransactionDetail | None:
        """Fetch one transaction; failures are logged and reported as None."""
        try:
            detail = await self._ledger.get_transaction(record.signature)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.warning(
                "transaction_fetch_failed",
                signature=record.signature,
                error=str(exc),
            )
            return None

        if detail is None:
            logger.debug("transaction_unavailable", signature=record.signature)
        return detail
