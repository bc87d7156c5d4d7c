import logging
import queue
import threading
from functools import partial
from typing import Any, Callable, Generic, Iterator, List, TypeVar

from .retry import RetryPolicy, pace, run_value
from .settings import max_threads

logger = logging.getLogger(__name__)

T = TypeVar("T")

# how often blocked producers / consumers re-check for cancellation or completion
_POLL = 0.05

class Stream(Generic[T]):
    """
    Items produced in the background, delivered through a bounded queue.

    The producer blocks when the queue is full.  Iterating the stream yields
    items until the producer is done (several threads may iterate the same
    stream, each item is delivered once).  At most one error is recorded:
    the first one, after which the producer stops.

    cancel is a threading.Event.  Once set, producers stop before their next
    upstream call and any pending put gives up, so abandoned streams don't
    leak threads.
    """

    def __init__(self, cap: int = 0, cancel: threading.Event|None = None) -> None:
        self.items: queue.Queue = queue.Queue(maxsize=max_threads(cap) if cap <= 0 else cap)
        self.errors: queue.Queue = queue.Queue(maxsize=1)
        self.cancel = cancel if cancel is not None else threading.Event()
        self._done = threading.Event()
        self._error_lock = threading.Lock()
        self._error: BaseException|None = None
        self._threads: List[threading.Thread] = []

    def __iter__(self) -> Iterator[T]:
        while True:
            try:
                yield self.items.get(timeout=_POLL)
            except queue.Empty:
                # everything is put before _done is set, so empty + done is final
                if self._done.is_set() and self.items.empty():
                    return

    def __repr__(self) -> str:
        state = "done" if self._done.is_set() else "running"
        return f"{str(self.__class__)}:{state}:{self.items.qsize()}"

    @property
    def cap(self) -> int:
        return self.items.maxsize

    @property
    def done(self) -> bool:
        return self._done.is_set()

    @property
    def cancelled(self) -> bool:
        return self.cancel.is_set()

    def put(self, item: T) -> bool:
        """
        Blocking put for producers.
        Returns False without queueing when the stream was cancelled.
        """
        while not self.cancel.is_set():
            try:
                self.items.put(item, timeout=_POLL)
                return True
            except queue.Full:
                continue
        return False

    def fail(self, err: BaseException) -> bool:
        """
        Record err if no error was recorded yet.
        Returns True if this was the first error.
        """
        with self._error_lock:
            if self._error is not None:
                logger.debug("dropping subsequent stream error: %s", err)
                return False
            self._error = err
            self.errors.put_nowait(err)
            return True

    def close(self) -> None:
        self._done.set()

    def start(self, target: Callable[[], None], close: bool = True) -> threading.Thread:
        """
        Run target in a daemon thread.  Any exception it raises becomes the
        stream error.  With close the stream is closed when target returns.
        """
        def _run():
            try:
                target()
            except Exception as e:
                self.fail(e)
            finally:
                if close:
                    self.close()
        t = threading.Thread(target=_run, daemon=True)
        self._threads.append(t)
        t.start()
        return t

    def wait(self, timeout: float|None = None) -> bool:
        return self._done.wait(timeout)

    def error(self, timeout: float|None = None) -> BaseException|None:
        """
        Wait for the producer to finish and return its error or None.
        Only call this after consuming the items or from another thread,
        otherwise a full queue keeps the producer from finishing.
        """
        self._done.wait(timeout)
        return self._error

    def list(self) -> List[T]:
        """Drain the whole stream, raising the stream error if there was one"""
        items = list(self)
        err = self.error()
        if err is not None:
            raise err
        return items

def list_request(method: Callable[..., Any], **kwargs) -> Callable[[str|None], dict]:
    """
    Turn a generated list method (e.g. service.users().list) and its query
    parameters into a page fetcher taking the page token.
    """
    kwargs.pop('pageToken', None)
    def fetch(page_token: str|None) -> dict:
        return method(pageToken=page_token, **kwargs).execute()
    return fetch

def paginate(fetch_page: Callable[[str|None], dict], err_key: str, items_key: str,
             cap: int = 0, cancel: threading.Event|None = None,
             factory: Callable[[dict], T]|None = None,
             policy: RetryPolicy|None = None) -> Stream[T]:
    """
    Drain a paginated list call in the background.
    Each page is fetched through the retrier.  Items come out in upstream
    order, page after page, until nextPageToken is empty or a page fails,
    in which case that error is the stream error and no further pages are read.
    factory optionally converts each raw item (e.g. into a dataclass).
    """
    stream: Stream[T] = Stream(cap, cancel)

    def produce():
        token = None
        while not stream.cancelled:
            response = run_value(err_key, partial(fetch_page, token), policy) or {}
            for i in response.get(items_key, None) or []:
                if not stream.put(factory(i) if factory else i):
                    return
            token = response.get('nextPageToken', None)
            if not token:
                return

    stream.start(produce)
    pace()
    return stream
