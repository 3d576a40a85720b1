import argparse
import logging
import signal
import sys
from typing import List, Optional, Tuple

from colorama import init as colorama_init

from dirfuzz import __version__
from dirfuzz.config import (
    DEFAULT_FILTER_STATUS,
    DEFAULT_METHOD,
    DEFAULT_THREADS,
    PLACEHOLDER,
)
from dirfuzz.engine import HttpFuzzer
from dirfuzz.errors import FuzzError
from dirfuzz.filters import (
    BodyMatcher,
    LengthMatcher,
    ResponseFilter,
    parse_length_filter,
    parse_status_selector,
)
from dirfuzz.output import dim, fmt_counter, fmt_elapsed, fmt_status_set, set_color
from dirfuzz.probe import ProbeConfig, build_probe
from dirfuzz.wordlist import Wordlist

SIGINT_COUNT = 0  # for double-press hard exit


def _install_sigint_handler(fuzzer: HttpFuzzer):
    def _handler(signum, frame):
        global SIGINT_COUNT
        SIGINT_COUNT += 1
        fuzzer.stop()
        if SIGINT_COUNT == 1:
            print("\n[!] Ctrl+C received — stopping new work (press again to force quit).", file=sys.stderr)
        else:
            raise KeyboardInterrupt
    signal.signal(signal.SIGINT, _handler)


def parse_headers(s: str) -> List[Tuple[str, str]]:
    """'Name: Value, Name2: Value2' -> [(name, value), ...], split on the first colon."""
    out = []
    for token in s.split(","):
        if not token.strip():
            continue
        if ":" not in token:
            raise argparse.ArgumentTypeError(
                f"invalid content for `{token.strip()}`: format 'Header1: Content1, Header2: Content2'")
        name, value = token.split(":", 1)
        out.append((name.strip(), value.strip()))
    return out


def _split_list(s: str) -> List[str]:
    return [x.strip() for x in s.split(",")]


def _length_filter(s: str):
    try:
        return parse_length_filter(s)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


def _status_filter(s: str):
    try:
        return parse_status_selector(s)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dirfuzz",
        description="Concurrent HTTP content-discovery fuzzer, imitation of Gobuster/ffuf.",
    )
    parser.add_argument("-u", "--url", required=True,
                        help=f"Target URL; '{PLACEHOLDER}' is replaced by each word, e.g. https://site/{PLACEHOLDER}")
    parser.add_argument("-w", "--wordlist", required=True, help="Path to the wordlist (optionally .gz)")
    parser.add_argument("-x", "--extensions", type=_split_list, default=[""],
                        help="File extensions to search for, e.g. json,xml")
    parser.add_argument("-m", "--method", default=DEFAULT_METHOD, help="HTTP method. Default: GET")
    parser.add_argument("-H", "--headers", type=parse_headers, action="extend", default=[],
                        help="Custom headers; use the format 'Header1: Content1, Header2: Content2'")
    parser.add_argument("-b", "--body", default="", help="Request body")
    parser.add_argument("-d", "--delay", type=float, default=0.0,
                        help="Delay after each request, per worker, in seconds")
    parser.add_argument("-t", "--threads", type=int, default=DEFAULT_THREADS,
                        help=f"Worker threads. Default: {DEFAULT_THREADS}")
    parser.add_argument("--timeout", type=float, default=None,
                        help="Connect/read timeout in seconds (default: none)")

    parser.add_argument("--filter-status-codes", type=_status_filter, default=DEFAULT_FILTER_STATUS,
                        help=f"Status codes to ignore, e.g. 404,500, 5xx or 400-403. Default: {DEFAULT_FILTER_STATUS}")
    parser.add_argument("--filter-content-length", type=_length_filter, default="",
                        help="Content lengths to ignore, e.g. 20,300, or a range, e.g. 20-300")
    parser.add_argument("--filter-body", default="", help="Ignore responses whose body contains this text")

    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Show path, status code and content length for each result")
    parser.add_argument("--no-color", action="store_true", help="Disable colored status codes")
    parser.add_argument("--debug", action="store_true", help="Log debug traces to stderr")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def _print_banner(args, wordlist: Wordlist, total_words: int, filters: ResponseFilter):
    print(f"\n{'─' * 80}", file=sys.stderr)
    print(f"  Target    : {args.method.upper()} {args.url}", file=sys.stderr)
    print(f"  Wordlist  : {args.wordlist} ({total_words:,} candidates)", file=sys.stderr)
    exts = [e for e in wordlist.extensions if e]
    if exts:
        print(f"  Extensions: {', '.join(exts)}", file=sys.stderr)
    print(f"  Threads   : {args.threads}   Delay: {args.delay}s   Redirects: show", file=sys.stderr)
    if filters.exclude_status:
        print(f"  Filter    : status {fmt_status_set(set(filters.exclude_status))}", file=sys.stderr)
    if filters.content_length != LengthMatcher():
        print(f"  Filter    : length {args.filter_content_length!r}", file=sys.stderr)
    if filters.body.text:
        print(f"  Filter    : body contains {args.filter_body!r}", file=sys.stderr)
    print(f"{'─' * 80}\n", file=sys.stderr)


def _print_summary(stats):
    rps = stats.processed / stats.elapsed if stats.elapsed > 0 else 0
    print(f"\n{'─' * 80}", file=sys.stderr)
    print(f"  Done in {fmt_elapsed(stats.elapsed)}  ({stats.processed:,} requests, ~{rps:.0f} req/s)",
          file=sys.stderr)
    print(f"  Hits: {stats.hits}", file=sys.stderr)
    if stats.status_counter:
        print(f"  Status distribution: {dim(fmt_counter(stats.status_counter))}", file=sys.stderr)
    print(f"{'─' * 80}", file=sys.stderr)


def run(args) -> int:
    wordlist = Wordlist(args.wordlist, args.extensions)
    total_words = len(wordlist)

    config = ProbeConfig(
        url=args.url,
        method=args.method,
        headers=tuple(args.headers),
        body=args.body,
        timeout=args.timeout,
    )
    filters = ResponseFilter(
        exclude_status=args.filter_status_codes,
        content_length=args.filter_content_length,
        body=BodyMatcher(args.filter_body),
    )

    with build_probe(config, pool_size=args.threads) as probe:
        fuzzer = HttpFuzzer(
            probe,
            filters,
            delay=args.delay,
            threads=args.threads,
            verbose=args.verbose,
        )
        _install_sigint_handler(fuzzer)
        _print_banner(args, wordlist, total_words, filters)
        stats = fuzzer.brute_force(wordlist, total=total_words)

    _print_summary(stats)
    return 130 if fuzzer.stopped else 0


def main(argv: Optional[List[str]] = None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.threads < 1:
        parser.error("--threads must be >= 1")
    if args.delay < 0:
        parser.error("--delay must be >= 0")
    if args.timeout is not None and args.timeout <= 0:
        parser.error("--timeout must be > 0")

    if args.debug:
        logging.basicConfig(level=logging.DEBUG, stream=sys.stderr,
                            format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    use_color = not args.no_color and sys.stdout.isatty()
    if use_color:
        colorama_init()
    set_color(use_color)

    try:
        code = run(args)
    except FuzzError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nFuzzing interrupted by user.", file=sys.stderr)
        sys.exit(130)
    sys.exit(code)


if __name__ == "__main__":
    main()
