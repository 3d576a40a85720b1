# Defaults shared by the probe, the engine and the command line.

PLACEHOLDER = "FUZZ"

DEFAULT_URL = "http://localhost:8080/" + PLACEHOLDER
DEFAULT_METHOD = "GET"
DEFAULT_THREADS = 10
DEFAULT_FILTER_STATUS = "404"

# Realistic default UA: many WAFs/servers reject bare or bot-like User-Agents,
# causing false-negative 403s.  Override with -H 'User-Agent: ...' if needed.
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/125.0.0.0 Safari/537.36"
)

# internal (not user-configurable) to keep memory/socket pressure stable
DISPATCH_BATCH_SIZE = 1000
