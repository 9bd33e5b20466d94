from dataclasses import dataclass
from datetime import timedelta


# fmt: off
@dataclass(frozen=True)
class BandwidthLimit:
    name: str                           # Bucket name, part of the shared-store key (e.g. 'sustained')
    capacity: int                       # Maximum number of tokens the bucket holds
    refill_period: timedelta            # The bucket is topped up to capacity once per period

    def __post_init__(self) -> None:
        if self.capacity <= 0:
            raise ValueError(f"Bandwidth '{self.name}' capacity must be positive (given value: {self.capacity}).")
        if self.refill_period <= timedelta(0):
            raise ValueError(f"Bandwidth '{self.name}' refill period must be positive (given value: {self.refill_period}).")

    @property
    def refill_period_ms(self) -> int:
        return int(self.refill_period.total_seconds() * 1000)


@dataclass(frozen=True)
class BucketProbeModel:
    consumed: bool                      # True if one token was taken from every bucket
    remaining: int                      # Smallest token count left across buckets
    wait_ms: int = 0                    # Milliseconds until a denied request could be admitted


@dataclass(frozen=True)
class AdmissionModel:
    allowed: bool                       # Admit or deny the wrapped operation
    retry_after: float = 0.0            # Seconds until retrying could succeed (0 when allowed)
    remaining: int | None = None        # Tokens left after admission (None when unknown, e.g. fail-open)
# fmt: on
