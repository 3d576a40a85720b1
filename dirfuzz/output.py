from collections import Counter
from typing import Set

from colorama import Fore, Style

from dirfuzz.probe import ProbeResponse

USE_COLOR = False


def set_color(enabled: bool) -> None:
    global USE_COLOR
    USE_COLOR = bool(enabled)


# ═══════════════════════════════════════════════════════════════
#  Formatting helpers
# ═══════════════════════════════════════════════════════════════

def color_status(code: int) -> str:
    if not USE_COLOR:
        return str(code)
    if 200 <= code < 300:
        return Fore.GREEN + str(code) + Style.RESET_ALL
    elif 300 <= code < 400:
        return Fore.YELLOW + str(code) + Style.RESET_ALL
    elif 400 <= code < 500:
        return Fore.RED + str(code) + Style.RESET_ALL
    elif 500 <= code < 600:
        return Fore.MAGENTA + str(code) + Style.RESET_ALL
    else:
        return str(code)


def dim(text: str) -> str:
    """Dim text if color is enabled; otherwise return unchanged."""
    if USE_COLOR:
        return Style.DIM + text + Style.RESET_ALL
    return text


def format_result(response: ProbeResponse, verbose: bool = False) -> str:
    return response.display(verbose, color_status(response.status_code))


def fmt_elapsed(elapsed: float) -> str:
    mins, secs = divmod(elapsed, 60)
    if mins:
        return f"{int(mins)}m {secs:.1f}s"
    return f"{secs:.1f}s"


def fmt_status_set(s: Set[int]) -> str:
    """Pretty-print a set of status codes (compact ranges)."""
    if not s:
        return "—"
    parts = []
    nums = sorted(s)
    i = 0
    while i < len(nums):
        start = nums[i]
        while i + 1 < len(nums) and nums[i + 1] == nums[i] + 1:
            i += 1
        end = nums[i]
        if end - start >= 99 and start % 100 == 0:
            parts.append(f"{start // 100}xx")
        elif start == end:
            parts.append(str(start))
        elif end - start <= 4:
            parts.extend(str(x) for x in range(start, end + 1))
        else:
            parts.append(f"{start}-{end}")
        i += 1
    return ", ".join(parts)


def fmt_counter(counter: Counter) -> str:
    """Pretty-print status distribution, e.g. '404×4521  200×3  301×12'."""
    if not counter:
        return "—"
    return "  ".join(f"{code}×{count}" for code, count in counter.most_common())
