from dataclasses import dataclass
from datetime import datetime, UTC


@dataclass(frozen=True)
class MappingModel:
    """Represent a short code to long URL mapping.

    Attributes:
        code (str):
            The unique short identifier (custom alias or generated).
        long_url (str):
            The original absolute http(s) URL the code resolves to.
        created_at (datetime):
            Timezone-aware UTC creation time. Never mutated.
        expires_at (datetime | None):
            Timezone-aware UTC time after which the mapping is no longer live.
            None means the mapping never expires.
        hit_count (int):
            Persisted click counter. No operation increments it.

    Example:
        >>> from datetime import datetime, timedelta, UTC
        >>> now = datetime.now(UTC)
        >>> mapping = MappingModel(
        ...     code='Gh71WPT',
        ...     long_url='https://example.com/article/123',
        ...     created_at=now,
        ...     expires_at=now + timedelta(days=1),
        ... )
        >>> mapping.is_live()
        True
        >>> mapping.is_live(now + timedelta(days=2))
        False
    """

    code: str
    long_url: str
    created_at: datetime
    expires_at: datetime | None = None
    hit_count: int = 0

    def is_live(self, now: datetime | None = None) -> bool:
        """True iff the mapping has no expiry or expires strictly after `now`."""
        if self.expires_at is None:
            return True
        return self.expires_at > (now or datetime.now(UTC))
