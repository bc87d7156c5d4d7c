import csv
import logging
import queue
import threading
from pathlib import Path
from typing import Any, Callable, TypeVar

from .errors import GSMError, RowParseError
from .flags import (Flag, FlagSet, FlagType, ParameterMap, check_indices,
                    consolidate, flags_to_map, row_to_map)
from .pager import Stream
from .settings import max_threads

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_DELIMITER = ";"

BATCH_FLAGS: FlagSet = {
    "path": Flag(type=FlagType.STRING, available_for=["batch"], required=["batch"],
                 description="Path of the import file (CSV)"),
    "delimiter": Flag(type=FlagType.RUNE, available_for=["batch"], defaults={"batch": DEFAULT_DELIMITER},
                      description="Delimiter to use for CSV columns. Must be exactly one character."),
    "skipHeader": Flag(type=FlagType.BOOL, available_for=["batch"],
                       description="Whether to skip the first row (header)"),
    "batchThreads": Flag(type=FlagType.INT, available_for=["batch"],
                         description="Number of threads used for batch commands (overrides the config value, max 16)"),
}

def batch_options(options: dict[str,Any]) -> dict[str,Any]:
    """
    Resolve the common batch options (see BATCH_FLAGS) into the keyword
    arguments batch_maps() takes.
    """
    m = flags_to_map("batch", BATCH_FLAGS, options)
    return {"path": m["path"].get_string(),
            "delimiter": m["delimiter"].get_rune(),
            "skip_header": m["skipHeader"].get_bool(),
            "threads": m["batchThreads"].get_int()}

class BatchStream(Stream[ParameterMap]):
    """
    Stream of ParameterMaps, one per CSV line.
    Lines that can't be read or coerced don't stop the batch, they end up
    on row_errors (and in the log) instead.
    """
    def __init__(self, cap: int = 0, cancel: threading.Event|None = None) -> None:
        super().__init__(cap, cancel)
        self.row_errors: queue.Queue = queue.Queue()

    def row_error(self, err: Exception) -> None:
        logger.error("%s", err)
        self.row_errors.put(err)

    def failed_rows(self) -> list[Exception]:
        """Row errors collected so far"""
        return list(self.row_errors.queue)

def batch_maps(command: str, flags: FlagSet, values: dict[str,Any], path: Path|str,
               delimiter: str = DEFAULT_DELIMITER, skip_header: bool = False,
               threads: int = 0, cancel: threading.Event|None = None) -> BatchStream:
    """
    Read a CSV file and produce one ParameterMap per line for command.

    values maps flag names to 1 based column indices, or <name>_ALL to a
    constant applied to every row.  Flag misuse (both forms set, required
    flag missing, a column beyond the header's width) raises before any
    row is produced.  The maps come out on a queue bounded by the thread
    count (default 4, max 16) for workers to consume in parallel.
    """
    consolidated = consolidate(command, flags, values)
    if not delimiter or len(delimiter) != 1:
        raise ValueError("delimiter must be exactly one character")
    stream = BatchStream(max_threads(threads), cancel)
    # undecodable bytes become U+FFFD and their row is rejected on its own
    f = open(Path(path), newline='', encoding='utf-8-sig', errors='replace')
    try:
        reader = csv.reader(f, delimiter=delimiter)
        first = next(reader, None)
        if first is None:
            raise ValueError(f"{path} is empty")
        check_indices(consolidated, len(first))
    except Exception:
        f.close()
        raise

    def emit(line: list[str], row: int) -> bool:
        bad = next((c for c in line if "\ufffd" in c), None)
        if bad is not None:
            stream.row_error(RowParseError("", row, bad, "not valid UTF-8"))
            return True
        try:
            m = row_to_map(consolidated, flags, line, row)
        except RowParseError as e:
            stream.row_error(e)
            return True
        return stream.put(m)

    def produce():
        with f:
            row = 1
            if not skip_header and not emit(first, row):
                return
            while not stream.cancelled:
                row += 1
                try:
                    line = next(reader)
                except StopIteration:
                    return
                except csv.Error as e:
                    stream.row_error(RowParseError("", row, "", str(e)))
                    continue
                if not emit(line, row):
                    return

    stream.start(produce)
    return stream

def process(maps: Stream[ParameterMap], fn: Callable[[ParameterMap], T], threads: int = 0) -> Stream[T]:
    """
    Run fn for every map on a pool of worker threads and stream the results.
    A row whose call fails is logged and skipped, the batch carries on.
    None results (deletes and the like) are not forwarded.
    """
    n = max_threads(threads) if threads else maps.cap
    results: Stream[T] = Stream(n, maps.cancel)

    def work():
        for m in maps:
            try:
                r = fn(m)
            except (GSMError, ValueError) as e:
                logger.error("%s", e)
                continue
            except Exception:
                logger.exception("unexpected failure processing %s", m)
                continue
            if r is not None and not results.put(r):
                return

    def supervise():
        workers = [threading.Thread(target=work, daemon=True) for _ in range(n)]
        for w in workers:
            w.start()
        for w in workers:
            w.join()

    results.start(supervise)
    return results
