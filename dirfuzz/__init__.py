# dirfuzz - concurrent HTTP content-discovery fuzzer

__version__ = "0.1.0"
