"""Thread-safety tests for the registry."""
import threading

from packed_registry import DuplicateNameError, Signature


def _run_all(threads):
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)
        assert not thread.is_alive()


def test_concurrent_distinct_registrations(registry):
    count = 100
    barrier = threading.Barrier(count)
    errors = []

    def worker(index):
        try:
            barrier.wait()
            registry.register(f"fn_{index}").set_body_typed(
                Signature.of(int, int), lambda x, index=index: x + index
            )
        except Exception as exc:  # pragma: no cover - reported below
            errors.append(exc)

    _run_all([threading.Thread(target=worker, args=(i,)) for i in range(count)])

    assert errors == []
    assert len(registry.list_names()) == count
    for index in range(count):
        assert registry.get(f"fn_{index}")(1000) == 1000 + index


def test_concurrent_duplicate_registrations_claim_once(registry):
    count = 20
    barrier = threading.Barrier(count)
    winners = []
    duplicates = []

    def worker(index):
        barrier.wait()
        try:
            entry = registry.register("shared")
        except DuplicateNameError:
            duplicates.append(index)
            return
        winners.append(index)
        entry.set_body_typed(Signature.of(int), lambda: index)

    _run_all([threading.Thread(target=worker, args=(i,)) for i in range(count)])

    assert len(winners) == 1
    assert len(duplicates) == count - 1
    assert registry.get("shared")() == winners[0]


def test_readers_never_see_entries_without_body(registry):
    writes = 200
    done = threading.Event()
    failures = []

    def writer():
        for index in range(writes):
            entry = registry.register(f"w_{index}")
            entry.set_body_typed(Signature.of(int), lambda index=index: index)
        done.set()

    def reader():
        while not done.is_set():
            for name in registry.list_names():
                if registry.get(name) is None:
                    failures.append(name)

    readers = [threading.Thread(target=reader) for _ in range(4)]
    _run_all([threading.Thread(target=writer), *readers])

    assert failures == []
    assert len(registry) == writes


def test_concurrent_remove_reports_once(registry):
    registry.register("target").set_body_typed(Signature.of(int), lambda: 1)
    count = 16
    barrier = threading.Barrier(count)
    results = []
    lock = threading.Lock()

    def worker():
        barrier.wait()
        removed = registry.remove("target")
        with lock:
            results.append(removed)

    _run_all([threading.Thread(target=worker) for _ in range(count)])

    assert results.count(True) == 1
    assert registry.get("target") is None
