"""Unit tests for the id generators."""

import threading

from nexushub.adapters.id_generators import SimpleIdGenerator, ULIDGenerator
from nexushub.interfaces.collection import normalize_id


def test_simple_ids_are_sequential_valid_ulids():
    gen = SimpleIdGenerator()
    ids = [gen.new_id() for _ in range(3)]
    assert ids == [f"{n:026d}" for n in (1, 2, 3)]
    assert all(normalize_id(i) == i for i in ids)


def test_simple_generator_start():
    assert SimpleIdGenerator(start=41).new_id() == f"{42:026d}"


def test_ulids_are_monotonic_and_canonical():
    gen = ULIDGenerator()
    ids = [gen.new_id() for _ in range(200)]
    assert ids == sorted(ids)
    assert len(set(ids)) == len(ids)
    assert all(normalize_id(i) == i for i in ids)


def test_ulid_generator_is_thread_safe():
    gen = ULIDGenerator()
    out: list[str] = []
    lock = threading.Lock()

    def worker():
        local = [gen.new_id() for _ in range(250)]
        with lock:
            out.extend(local)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert len(set(out)) == 2000
