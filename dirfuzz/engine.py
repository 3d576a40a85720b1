import enum
import logging
import sys
import threading
import time
from collections import Counter
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Iterable, List, NamedTuple, Optional, TextIO, Tuple

from tqdm import tqdm

from dirfuzz.config import DEFAULT_THREADS, DISPATCH_BATCH_SIZE
from dirfuzz.errors import ConfigError, FuzzError
from dirfuzz.filters import ResponseFilter
from dirfuzz.output import format_result
from dirfuzz.probe import HttpProbe

logger = logging.getLogger(__name__)


class RunState(enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    ABORTED = "aborted"


class FuzzStats(NamedTuple):
    processed: int
    hits: int
    elapsed: float
    status_counter: Counter


def read_in_batches(iterator: Iterable[str], batch_size: int) -> Iterable[List[str]]:
    batch: List[str] = []
    for item in iterator:
        batch.append(item)
        if len(batch) == batch_size:
            yield batch
            batch = []
    if batch:
        yield batch


class HttpFuzzer:
    """
    Runs one probe per wordlist candidate on a pool of `threads` workers.

    Each unit is probe -> filter -> emit -> delay, so the delay throttles each
    worker on its own.  Candidates are dispatched in wordlist order; results
    are written as units finish.  The first error observed stops dispatching,
    in-flight units drain, and the error is re-raised.  Lines already written
    stay written.
    """

    def __init__(self,
                 probe: HttpProbe,
                 filters: ResponseFilter,
                 delay: float = 0.0,
                 threads: int = DEFAULT_THREADS,
                 verbose: bool = False,
                 out: Optional[TextIO] = None,
                 show_progress: Optional[bool] = None):
        if threads < 1:
            raise ConfigError("threads must be >= 1")
        if delay < 0:
            raise ConfigError("delay must be >= 0")
        self.probe = probe
        self.filters = filters
        self.delay = delay
        self.threads = threads
        self.verbose = verbose
        self.out = out
        self.show_progress = show_progress
        self.state = RunState.IDLE
        self._stop = threading.Event()
        self._write_lock = threading.Lock()

    def stop(self) -> None:
        """Stop dispatching new candidates; in-flight units finish."""
        self._stop.set()

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    def _emit(self, line: str) -> None:
        with self._write_lock:
            tqdm.write(line, file=self.out or sys.stdout)

    def _process(self, word: str) -> Optional[Tuple[int, bool]]:
        if self._stop.is_set():
            return None
        try:
            response = self.probe.probe(word)
            kept = self.filters.filter(response)
        except BaseException:
            # peers still queued see the flag before probing
            self._stop.set()
            raise
        if kept is not None:
            self._emit(format_result(kept, self.verbose))
        else:
            logger.debug("filtered %s (%d, %d bytes)", response.request_url,
                         response.status_code, response.content_length)
        if self.delay > 0:
            self._stop.wait(self.delay)
        return response.status_code, kept is not None

    def brute_force(self, words: Iterable[str], total: Optional[int] = None) -> FuzzStats:
        if self.state is not RunState.IDLE:
            raise FuzzError(f"Fuzzer already {self.state.value}")
        if total is None and hasattr(words, "__len__"):
            total = len(words)  # type: ignore[arg-type]

        self.state = RunState.RUNNING
        processed = 0
        hits = 0
        status_counter: Counter = Counter()
        first_error: Optional[FuzzError] = None
        run_start = time.monotonic()

        disable = not sys.stderr.isatty() if self.show_progress is None else not self.show_progress
        pbar = tqdm(total=total, desc="Fuzzing", unit="req", disable=disable)

        executor = ThreadPoolExecutor(max_workers=self.threads)
        interrupted = False
        try:
            for batch in read_in_batches(words, DISPATCH_BATCH_SIZE):
                if self._stop.is_set():
                    break

                future_to_word = {executor.submit(self._process, word): word for word in batch}

                for future in as_completed(future_to_word):
                    word = future_to_word[future]
                    try:
                        outcome = future.result()
                    except FuzzError as e:
                        if first_error is None:
                            logger.debug("aborting run on %r: %s", word, e)
                            first_error = e
                        self._stop.set()
                        continue
                    except Exception as e:
                        if first_error is None:
                            first_error = FuzzError("Internal error while probing", word=word, cause=e)
                            first_error.__cause__ = e
                        self._stop.set()
                        continue

                    if outcome is None:
                        continue

                    status, kept = outcome
                    pbar.update(1)
                    processed += 1
                    status_counter[status] += 1
                    if kept:
                        hits += 1
                        pbar.set_postfix(hits=hits, refresh=False)
        except BaseException:
            interrupted = True
            self._stop.set()
            self.state = RunState.ABORTED
            raise
        finally:
            executor.shutdown(wait=not interrupted, cancel_futures=True)
            pbar.close()

        elapsed = time.monotonic() - run_start
        stats = FuzzStats(processed, hits, elapsed, status_counter)
        if first_error is not None:
            self.state = RunState.ABORTED
            raise first_error
        self.state = RunState.ABORTED if self._stop.is_set() else RunState.COMPLETED
        return stats
