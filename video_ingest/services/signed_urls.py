from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable

from video_ingest.core.config import MAX_SIGNED_URL_DAYS
from video_ingest.core.storage import BlobRef, BlobStore
from video_ingest.utils.task_helpers import utc_now


@dataclass
class SignedURL:
    url: str
    expires_at: datetime


class SignedURLIssuer:
    """
    Issues read URLs that expire a configured number of days out.

    The window must stay strictly under the store's maximum so clock skew and
    slow renewals never produce a URL the store would refuse.
    """

    def __init__(self, blobs: BlobStore, expiration_days: int, clock: Callable[[], datetime] = utc_now):
        if not 0 < expiration_days < MAX_SIGNED_URL_DAYS:
            raise ValueError(
                f"expiration_days must be between 1 and {MAX_SIGNED_URL_DAYS - 1}, got {expiration_days}"
            )
        self.blobs = blobs
        self.expiration = timedelta(days=expiration_days)
        self.clock = clock

    async def issue(self, ref: BlobRef) -> SignedURL:
        issued_at = self.clock()
        url = await self.blobs.generate_signed_url(ref, int(self.expiration.total_seconds()))
        return SignedURL(url=url, expires_at=issued_at + self.expiration)
