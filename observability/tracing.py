"""Simple span helper for recording pipeline stage timings."""
from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Dict, Iterator, List


@contextmanager
def span(events: List[Dict[str, object]], name: str) -> Iterator[None]:
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed_ms = int((time.perf_counter() - start) * 1000)
        events.append({"span": name, "ms": elapsed_ms})


def total_ms(events: List[Dict[str, object]]) -> int:
    return sum(int(evt.get("ms", 0)) for evt in events)  # type: ignore[arg-type]


__all__ = ["span", "total_ms"]
