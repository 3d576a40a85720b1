import re
from typing import Dict, Iterable, Tuple

from dirfuzz.config import PLACEHOLDER
from dirfuzz.errors import HeaderInvalid

# RFC 7230 token for names; values follow the same rule requests applies
# (no CR/LF, no leading whitespace).
_HEADER_NAME_RE = re.compile(r"[!#$%&'*+\-.^_`|~0-9A-Za-z]+")
_HEADER_VALUE_RE = re.compile(r"(\S[^\r\n]*)?")


def has_placeholder(text: str, token: str = PLACEHOLDER) -> bool:
    return token in text


def is_token(text: str) -> bool:
    return _HEADER_NAME_RE.fullmatch(text) is not None


def substitute(template: str, word: str, token: str = PLACEHOLDER) -> str:
    """Replace every occurrence of the token in template with word."""
    return template.replace(token, word)


def validate_header(name: str, value: str) -> Tuple[str, str]:
    try:
        name.encode("latin-1")
        value.encode("latin-1")
    except UnicodeEncodeError as e:
        raise HeaderInvalid(f"Header {name!r} is not latin-1 encodable", cause=e) from e
    if not _HEADER_NAME_RE.fullmatch(name):
        raise HeaderInvalid(f"Invalid header name {name!r}")
    if not _HEADER_VALUE_RE.fullmatch(value):
        raise HeaderInvalid(f"Invalid value for header {name!r}: {value!r}")
    return name, value


def substitute_headers(headers: Iterable[Tuple[str, str]],
                       word: str,
                       token: str = PLACEHOLDER) -> Dict[str, str]:
    """
    Build a fresh header dict for one request.  The token is replaced in both
    names and values, so a fuzzed name changes which header is sent.
    Raises HeaderInvalid if a substituted pair is not valid HTTP syntax.
    """
    out: Dict[str, str] = {}
    for name, value in headers:
        new_name = substitute(name, word, token)
        new_value = substitute(value, word, token)
        try:
            validate_header(new_name, new_value)
        except HeaderInvalid as e:
            raise HeaderInvalid(e.message, word=word, cause=e.cause) from e
        out[new_name] = new_value
    return out
