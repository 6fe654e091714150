"""Cache-aside storage for statement PDFs.

Generating a statement PDF is slow and rate limited at the vendor, so the
first download is written to the object store and later requests for the same
statement are served from there.
"""

import logging
from collections.abc import Awaitable, Callable
from urllib.parse import quote

from .models import StatementPdf
from .storage import ObjectStore

logger = logging.getLogger(__name__)

PDF_CONTENT_TYPE = "application/pdf"


def _segment(value: str) -> str:
    """Percent-encode a vendor id so it stays a single path segment."""
    segment = quote(value, safe="")
    return segment.replace(".", "%2E") if segment in (".", "..") else segment


def statement_cache_key(
    team_id: str, user_id: str, account_id: str, statement_id: str
) -> str:
    """Object store key of a cached statement."""
    team, user, account, statement = (
        _segment(v) for v in (team_id, user_id, account_id, statement_id)
    )
    return f"statements/{team}/{user}/{account}/{statement}.pdf"


def statement_filename(statement_id: str) -> str:
    """Download filename of a statement, free of path separators."""
    return f"statement_{_segment(statement_id)}.pdf"


class StatementPdfCache:
    """Read-through cache in front of a vendor statement download.

    Concurrent misses for the same key may both fetch and both write; the
    content is identical so the last write wins.
    """

    def __init__(self, store: ObjectStore):
        self.store = store

    async def get_or_fetch(
        self,
        fetch: Callable[[], Awaitable[bytes]],
        *,
        team_id: str,
        user_id: str,
        account_id: str,
        statement_id: str,
    ) -> StatementPdf:
        """Return the cached PDF, fetching and storing it on a miss.

        Args:
            fetch: Coroutine function downloading the PDF from the vendor
            team_id: Owning team
            user_id: Requesting user
            account_id: Account the statement belongs to
            statement_id: Vendor statement identifier

        Returns:
            StatementPdf: PDF bytes and download filename
        """
        key = statement_cache_key(team_id, user_id, account_id, statement_id)
        filename = statement_filename(statement_id)

        cached = await self.store.get(key)
        if cached is not None:
            logger.debug(f"Statement cache hit: {key}")
            return StatementPdf(pdf=cached, filename=filename)

        logger.debug(f"Statement cache miss: {key}")
        pdf = await fetch()
        await self.store.put(key, pdf, content_type=PDF_CONTENT_TYPE)
        return StatementPdf(pdf=pdf, filename=filename)
