import io
import threading

import pytest

from dirfuzz.engine import HttpFuzzer, RunState, read_in_batches
from dirfuzz.errors import ConfigError, FuzzError, HeaderInvalid, TransportError
from dirfuzz.filters import ResponseFilter
from dirfuzz.probe import ProbeConfig, ProbeResponse, build_probe
from dirfuzz.wordlist import Wordlist


class FakeProbe:
    """Answers 200 with the word as body; raises for words in `failures`."""

    def __init__(self, failures=None, status=None):
        self.failures = failures or {}
        self.status = status or {}
        self.seen = []
        self.lock = threading.Lock()

    def probe(self, word):
        with self.lock:
            self.seen.append(word)
        if word in self.failures:
            raise self.failures[word]
        return ProbeResponse(word, f"http://target/{word}", self.status.get(word, 200), word)


def _fuzzer(probe, **kwargs):
    out = io.StringIO()
    kwargs.setdefault("filters", ResponseFilter(exclude_status={404}))
    fuzzer = HttpFuzzer(probe, out=out, show_progress=False, **kwargs)
    return fuzzer, out


def test_read_in_batches():
    assert list(read_in_batches(iter("abcde"), 2)) == [["a", "b"], ["c", "d"], ["e"]]


def test_brute_force_emits_kept_responses(stub_server, make_wordlist):
    stub_server.route("/hello", 200, "hello")
    stub_server.route("/admin", 403, "forbidden")
    wordlist = Wordlist(make_wordlist("hello\nmissing\nadmin\n"))

    with build_probe(ProbeConfig(url=f"{stub_server.url}/FUZZ")) as probe:
        fuzzer, out = _fuzzer(probe, threads=2)
        stats = fuzzer.brute_force(wordlist)

    lines = sorted(out.getvalue().splitlines())
    assert lines == [f"{stub_server.url}/admin", f"{stub_server.url}/hello"]
    assert stats.processed == 3
    assert stats.hits == 2
    assert stats.status_counter == {200: 1, 403: 1, 404: 1}
    assert fuzzer.state is RunState.COMPLETED


def test_verbose_output_format(stub_server):
    stub_server.route("/hello", 200, "hello")

    with build_probe(ProbeConfig(url=f"{stub_server.url}/FUZZ")) as probe:
        fuzzer, out = _fuzzer(probe, verbose=True)
        fuzzer.brute_force(["hello"])

    assert out.getvalue() == f"{'/hello':<30}  (200) [Size: 5]\n"


def test_concurrency_is_bounded(stub_server):
    words = [f"w{i}" for i in range(100)]
    for i, word in enumerate(words):
        if i % 3 == 0:
            stub_server.route(f"/{word}", 200, "found")
    stub_server.latency = 0.02

    with build_probe(ProbeConfig(url=f"{stub_server.url}/FUZZ"), pool_size=4) as probe:
        fuzzer, out = _fuzzer(probe, threads=4)
        stats = fuzzer.brute_force(words)

    expected = {f"{stub_server.url}/{w}" for i, w in enumerate(words) if i % 3 == 0}
    lines = out.getvalue().splitlines()
    assert len(lines) == len(expected)
    assert set(lines) == expected
    assert stats.processed == 100
    assert len(stub_server.requests) == 100
    assert 1 <= stub_server.max_inflight <= 4


def test_dispatch_follows_wordlist_order_with_one_worker():
    probe = FakeProbe()
    fuzzer, out = _fuzzer(probe, threads=1)

    fuzzer.brute_force(["c", "a", "b"])

    assert probe.seen == ["c", "a", "b"]
    assert out.getvalue().splitlines() == ["http://target/c", "http://target/a", "http://target/b"]


def test_delay_applies_per_worker():
    fuzzer, _ = _fuzzer(FakeProbe(), threads=1, delay=0.05)

    stats = fuzzer.brute_force(["a", "b", "c"])

    assert stats.elapsed >= 0.12


def test_transport_error_aborts_run_and_keeps_output():
    error = TransportError("Request failed", word="boom", url="http://target/boom")
    probe = FakeProbe(failures={"boom": error})
    fuzzer, out = _fuzzer(probe, threads=1)

    with pytest.raises(TransportError) as exc:
        fuzzer.brute_force(["ok1", "ok2", "boom", "never1", "never2"])

    assert exc.value is error
    assert fuzzer.state is RunState.ABORTED
    assert out.getvalue().splitlines() == ["http://target/ok1", "http://target/ok2"]
    assert "never1" not in probe.seen
    assert "never2" not in probe.seen


def test_header_error_aborts_run():
    probe = FakeProbe(failures={"bad": HeaderInvalid("Invalid header name", word="bad")})
    fuzzer, _ = _fuzzer(probe, threads=4)

    with pytest.raises(HeaderInvalid):
        fuzzer.brute_force([f"w{i}" for i in range(10)] + ["bad"])


def test_unexpected_error_is_wrapped_with_word():
    probe = FakeProbe(failures={"x": RuntimeError("kaput")})
    fuzzer, _ = _fuzzer(probe, threads=2)

    with pytest.raises(FuzzError) as exc:
        fuzzer.brute_force(["x"])

    assert exc.value.word == "x"
    assert isinstance(exc.value.cause, RuntimeError)
    assert "kaput" in str(exc.value)


def test_filtered_responses_are_not_emitted():
    probe = FakeProbe(status={"gone": 404})
    fuzzer, out = _fuzzer(probe)

    stats = fuzzer.brute_force(["gone", "here"])

    assert out.getvalue().splitlines() == ["http://target/here"]
    assert stats.hits == 1
    assert stats.processed == 2


def test_stop_before_run_dispatches_nothing():
    probe = FakeProbe()
    fuzzer, out = _fuzzer(probe)
    fuzzer.stop()

    stats = fuzzer.brute_force(["a", "b"])

    assert probe.seen == []
    assert stats.processed == 0
    assert fuzzer.state is RunState.ABORTED


def test_fuzzer_runs_once():
    fuzzer, _ = _fuzzer(FakeProbe())
    fuzzer.brute_force(["a"])

    with pytest.raises(FuzzError):
        fuzzer.brute_force(["a"])


@pytest.mark.parametrize("kwargs", [{"threads": 0}, {"delay": -1}])
def test_invalid_run_settings(kwargs):
    with pytest.raises(ConfigError):
        _fuzzer(FakeProbe(), **kwargs)
