from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Tuple

DEFAULT_THREADS = 4
MAX_THREADS = 16

@dataclass
class Settings():
    """
    Process wide knobs that every API call reads.
    standard_delay is in milliseconds and is applied (plus the jitter range)
    after every call to spread load across concurrent workers.
    retry_on holds additional HTTP status codes that should be retried on top
    of the 403 quota / rate limit errors that are always retried.
    """
    standard_delay: int = field(default=0)
    jitter: Tuple[int,int] = field(default=(1, 50))
    threads: int = field(default=0)
    retry_on: List[int] = field(default_factory=list)
    cfg_dir: Path = field(default_factory=lambda: Path.home() / ".config" / "gsm")

    def __post_init__(self) -> None:
        self.fixup()

    def fixup(self) -> None:
        if not isinstance(self.cfg_dir, Path):
            self.cfg_dir = Path(str(self.cfg_dir))
        lo, hi = self.jitter
        if lo < 0 or hi < lo:
            raise ValueError(f"Invalid jitter range: {self.jitter}")
        if self.standard_delay < 0:
            raise ValueError(f"Invalid standard delay: {self.standard_delay}")

settings = Settings()

def max_threads(threads: int = 0, config: Settings|None = None) -> int:
    """
    Number of worker threads to spawn.
    The explicit value wins, then the configured value, then the default of 4.
    Never more than 16.
    """
    s = config if config is not None else settings
    t = int(threads) if threads else 0
    if not t:
        t = s.threads if s.threads else DEFAULT_THREADS
    return min(t, MAX_THREADS)
