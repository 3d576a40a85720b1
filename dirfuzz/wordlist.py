import gzip
import os
from typing import Iterable, Iterator, List, Optional

from dirfuzz.errors import WordlistNotFound


def _open_text(path: str):
    return gzip.open(path, "rt", encoding="utf-8", errors="replace") if path.lower().endswith(".gz") \
        else open(path, "r", encoding="utf-8", errors="replace")


def _normalize_extension(ext: str) -> str:
    ext = ext.strip()
    if not ext:
        return ""
    return ext if ext.startswith(".") else "." + ext


class Wordlist:
    """
    Candidate words read lazily from a newline-delimited UTF-8 file (optionally
    .gz), crossed with a list of extension suffixes.

    Every call to iter() reopens the file, so concurrent iterations are
    independent and yield the same sequence.  Blank lines are kept as empty
    candidates.
    """

    def __init__(self, path: str, extensions: Optional[Iterable[str]] = None):
        path = os.fspath(path)
        if not os.path.isfile(path):
            raise WordlistNotFound(f"Wordlist file '{path}' not found")
        self.path = path
        self._extensions: List[str] = [""]
        if extensions is not None:
            self.set_extensions(extensions)

    @property
    def extensions(self) -> List[str]:
        return list(self._extensions)

    def set_extensions(self, extensions: Iterable[str]) -> None:
        exts = [_normalize_extension(e) for e in extensions]
        self._extensions = exts or [""]

    def words(self) -> Iterator[str]:
        try:
            with _open_text(self.path) as f:
                for line in f:
                    yield line.rstrip("\r\n")
        except OSError as e:
            raise WordlistNotFound(f"Wordlist file '{self.path}' could not be read", cause=e) from e

    def __iter__(self) -> Iterator[str]:
        for word in self.words():
            for ext in self._extensions:
                yield word + ext

    def __len__(self) -> int:
        c = 0
        for _ in self.words():
            c += 1
        return c * len(self._extensions)
