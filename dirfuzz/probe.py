import logging
from typing import Dict, NamedTuple, Optional, Tuple
from urllib.parse import urlparse

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from dirfuzz.config import (
    DEFAULT_METHOD,
    DEFAULT_THREADS,
    DEFAULT_URL,
    DEFAULT_USER_AGENT,
    PLACEHOLDER,
)
from dirfuzz.errors import ConfigError, HeaderInvalid, PlaceholderNotFound, TransportError
from dirfuzz.substitution import (
    has_placeholder,
    is_token,
    substitute,
    substitute_headers,
    validate_header,
)

logger = logging.getLogger(__name__)


class ProbeResponse(NamedTuple):
    word: str
    request_url: str
    status_code: int
    body: str

    @property
    def content_length(self) -> int:
        return len(self.body.encode("utf-8"))

    def display(self, verbose: bool = False, status: Optional[str] = None) -> str:
        """
        Bare request URL by default; verbose mode gives
        '<url-path>  (<status>) [Size: <content-length>]'.  `status` overrides
        how the code is rendered (e.g. colorized).
        """
        if not verbose:
            return self.request_url
        path = urlparse(self.request_url).path or "/"
        status = status if status is not None else str(self.status_code)
        return f"{path:<30}  ({status}) [Size: {self.content_length}]"


class ProbeConfig(NamedTuple):
    url: str = DEFAULT_URL
    method: str = DEFAULT_METHOD
    headers: Tuple[Tuple[str, str], ...] = ()
    body: str = ""
    timeout: Optional[float] = None


# ═══════════════════════════════════════════════════════════════
#  Connection management
# ═══════════════════════════════════════════════════════════════

def _make_adapter(pool_size: int) -> HTTPAdapter:
    # No retries: a transport failure surfaces immediately.
    pool = max(pool_size, 1)
    return HTTPAdapter(
        pool_connections=pool,
        pool_maxsize=pool,
        max_retries=Retry(total=0, read=False),
    )


def _response_encoding(response: requests.Response) -> str:
    content_type = response.headers.get("Content-Type", "")
    if "charset" in content_type.lower() and response.encoding:
        return response.encoding
    return "utf-8"


def _read_text(response: requests.Response) -> str:
    """Read and decode the body; any failure yields an empty body."""
    try:
        raw = response.content or b""
    except requests.RequestException as e:
        logger.debug("body read failed for %s: %s", response.url, e)
        return ""
    try:
        return raw.decode(_response_encoding(response), errors="replace")
    except LookupError:
        return ""


# ═══════════════════════════════════════════════════════════════
#  Probe
# ═══════════════════════════════════════════════════════════════

class HttpProbe:
    """
    One request template bound to a configured session.  Safe to share across
    worker threads: probe() never mutates the session or the template.
    """

    def __init__(self, config: ProbeConfig, session: requests.Session,
                 fuzzed_headers: Tuple[Tuple[str, str], ...]):
        self.config = config
        self.session = session
        self.fuzzed_headers = fuzzed_headers

    def resolve(self, word: str) -> Tuple[str, Dict[str, str], str]:
        """Return (url, per-request headers, body) for word."""
        url = substitute(self.config.url, word)
        headers = substitute_headers(self.fuzzed_headers, word)
        body = substitute(self.config.body, word)
        return url, headers, body

    def probe(self, word: str) -> ProbeResponse:
        url, headers, body = self.resolve(word)
        logger.debug("%s %s", self.config.method, url)
        try:
            response = self.session.request(
                self.config.method,
                url,
                headers=headers or None,
                data=body.encode("utf-8") if body else None,
                allow_redirects=False,
                timeout=self.config.timeout,
                stream=True,
            )
        except requests.exceptions.InvalidHeader as e:
            raise HeaderInvalid("Invalid header", word=word, url=url, cause=e) from e
        except requests.RequestException as e:
            raise TransportError("Request failed", word=word, url=url, cause=e) from e

        try:
            return ProbeResponse(word, url, response.status_code, _read_text(response))
        finally:
            response.close()

    def close(self) -> None:
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


def build_probe(config: ProbeConfig = ProbeConfig(),
                session: Optional[requests.Session] = None,
                pool_size: int = DEFAULT_THREADS) -> HttpProbe:
    """
    Validate config and bind it to a session.

    Headers whose name or value holds the placeholder are kept aside and
    substituted per request; the rest become session defaults on top of the
    default User-Agent.  Raises PlaceholderNotFound when the placeholder is
    absent from the URL, the body and every header.
    """
    method = config.method.strip().upper()
    if not is_token(method):
        raise ConfigError(f"Invalid HTTP method {config.method!r}")

    static = []
    fuzzed = []
    for name, value in config.headers:
        if has_placeholder(name) or has_placeholder(value):
            fuzzed.append((name, value))
        else:
            static.append(validate_header(name, value))

    if not (has_placeholder(config.url) or has_placeholder(config.body) or fuzzed):
        raise PlaceholderNotFound(
            f"No '{PLACEHOLDER}' placeholder found in URL, body or headers", url=config.url)

    if session is None:
        session = requests.Session()
    session.trust_env = False
    adapter = _make_adapter(pool_size)
    session.mount("http://", adapter)
    session.mount("https://", adapter)

    session.headers["User-Agent"] = DEFAULT_USER_AGENT
    session.headers.update(static)

    return HttpProbe(config._replace(method=method), session, tuple(fuzzed))
