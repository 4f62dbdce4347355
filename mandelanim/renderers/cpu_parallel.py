from __future__ import annotations

import logging
import multiprocessing as mp
import os
import queue
import threading
import time
from typing import Iterator, List, NamedTuple, Optional, Sequence

import numpy as np

from mandelanim.coloring import ColorMapper
from mandelanim.errors import ConfigurationError, RenderError
from mandelanim.escape import escape_time, warm_up
from mandelanim.geometry import Viewport, pixel_offset, rotate_translate
from mandelanim.palette import Color
from mandelanim.util.logging_setup import get_logger, route_worker_logs

BACKENDS = ("process", "thread")
DEFAULT_CHUNK_SIZE = 256
QUEUE_DEPTH_PER_WORKER = 4

_STOP = None
_PUT_TIMEOUT = 0.5


class PixelJob(NamedTuple):
    x: int
    y: int
    a: float
    b: float


class PixelResult(NamedTuple):
    x: int
    y: int
    color: Color


def default_worker_count() -> int:
    # Leave two cores for the collector and the encoder.
    return max(1, (os.cpu_count() or 1) - 2)


def compute_pixel(job: PixelJob, viewport: Viewport, color_mapper: ColorMapper, max_iteration: int) -> PixelResult:
    a, b = rotate_translate(viewport, job.a, job.b)
    in_set, iteration, smooth = escape_time(a, b, max_iteration)
    return PixelResult(job.x, job.y, color_mapper(in_set, iteration, smooth))


def iter_jobs(viewport: Viewport) -> Iterator[PixelJob]:
    for x in range(viewport.width):
        for y in range(viewport.height):
            a, b = pixel_offset(viewport, x, y)
            yield PixelJob(x, y, a, b)


def _iter_batches(viewport: Viewport, chunk_size: int) -> Iterator[List[PixelJob]]:
    batch: List[PixelJob] = []
    for job in iter_jobs(viewport):
        batch.append(job)
        if len(batch) == chunk_size:
            yield batch
            batch = []
    if batch:
        yield batch


def _drain_jobs(jobs, results, viewport: Viewport, color_mapper: ColorMapper, max_iteration: int) -> None:
    while True:
        batch = jobs.get()
        if batch is _STOP:
            return
        results.put([compute_pixel(job, viewport, color_mapper, max_iteration) for job in batch])


def _process_worker(jobs, results, viewport, color_mapper, max_iteration, log_queue, log_level) -> None:
    route_worker_logs(log_queue, log_level)
    try:
        _drain_jobs(jobs, results, viewport, color_mapper, max_iteration)
    except Exception:
        get_logger().exception("Worker %s failed", mp.current_process().name)
        raise


def _thread_worker(jobs, results, viewport, color_mapper, max_iteration, failures: list) -> None:
    try:
        _drain_jobs(jobs, results, viewport, color_mapper, max_iteration)
    except Exception as e:
        get_logger().exception("Worker %s failed", threading.current_thread().name)
        failures.append(e)


def _collect(results, buf: np.ndarray, writes: np.ndarray, failures: list) -> None:
    while True:
        batch = results.get()
        if batch is _STOP:
            return
        if failures:
            # Keep draining so workers never block on a full result queue.
            continue
        try:
            for x, y, color in batch:
                buf[y, x] = color
                writes[y, x] += 1
        except Exception as e:
            get_logger().exception("Collector failed to store a result batch")
            failures.append(e)


def _put(q, item, pool: Sequence) -> None:
    while True:
        try:
            q.put(item, timeout=_PUT_TIMEOUT)
            return
        except queue.Full:
            if not any(w.is_alive() for w in pool):
                raise RenderError("All workers exited before the job queue was drained.") from None


def _abort(pool: Sequence) -> None:
    # Worker threads are daemons and cannot be stopped; processes can.
    for w in pool:
        if not isinstance(w, threading.Thread) and w.is_alive():
            w.terminate()
            w.join()


def render_viewport(
    viewport: Viewport,
    color_mapper: ColorMapper,
    max_iteration: int,
    *,
    workers: Optional[int] = None,
    backend: str = "process",
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    log_queue=None,
    log_level: int = logging.INFO,
    frame_id: Optional[str] = None,
) -> np.ndarray:
    """
    Render one viewport into a (height, width, 3) uint8 buffer.

    One job per pixel flows through a bounded job queue to the worker pool;
    a single collector thread owns the buffer and writes each result. Jobs
    travel in batches of ``chunk_size`` to keep queue traffic low. Shutdown
    runs in two stages: stop sentinels for every worker, join workers, then a
    stop sentinel for the collector and join it.
    """
    logger = get_logger()
    if backend not in BACKENDS:
        raise ConfigurationError(f"backend must be one of: {', '.join(BACKENDS)}")
    worker_count = default_worker_count() if workers is None else int(workers)
    if worker_count < 1:
        raise ConfigurationError("workers must be >= 1")
    if chunk_size < 1:
        raise ConfigurationError("chunk_size must be >= 1")

    depth = QUEUE_DEPTH_PER_WORKER * worker_count
    buf = np.zeros((viewport.height, viewport.width, 3), dtype=np.uint8)
    writes = np.zeros((viewport.height, viewport.width), dtype=np.uint32)
    failures: list = []

    if backend == "process":
        # Forked workers inherit the compiled kernel instead of compiling it again.
        warm_up()
        ctx = mp.get_context()
        jobs = ctx.Queue(maxsize=depth)
        results = ctx.Queue(maxsize=depth)
        pool = [
            ctx.Process(
                target=_process_worker,
                args=(jobs, results, viewport, color_mapper, max_iteration, log_queue, log_level),
                name=f"mandelanim-worker-{i}",
                daemon=True,
            )
            for i in range(worker_count)
        ]
    else:
        jobs = queue.Queue(maxsize=depth)
        results = queue.Queue(maxsize=depth)
        pool = [
            threading.Thread(
                target=_thread_worker,
                args=(jobs, results, viewport, color_mapper, max_iteration, failures),
                name=f"mandelanim-worker-{i}",
                daemon=True,
            )
            for i in range(worker_count)
        ]
    collector = threading.Thread(
        target=_collect, args=(results, buf, writes, failures), name="mandelanim-collector", daemon=True
    )

    logger.info("[Frame %s] CPU render start %sx%s center=(%s, %s) scale=%s rotation=%s backend=%s workers=%s",
                frame_id, viewport.width, viewport.height, viewport.center_x, viewport.center_y,
                viewport.scale, viewport.rotation, backend, worker_count)
    start = time.perf_counter()

    collector.start()
    for w in pool:
        w.start()
    try:
        for batch in _iter_batches(viewport, chunk_size):
            _put(jobs, batch, pool)
        for _ in pool:
            _put(jobs, _STOP, pool)
        for w in pool:
            w.join()
    except BaseException:
        _abort(pool)
        raise
    finally:
        results.put(_STOP)
        collector.join()
        if backend == "process":
            # Batches left behind by dead workers must not block interpreter exit.
            jobs.close()
            jobs.cancel_join_thread()

    if backend == "process":
        crashed = [w.name for w in pool if w.exitcode != 0]
        if crashed:
            raise RenderError(f"Worker processes failed: {', '.join(crashed)}")
    if failures:
        raise RenderError(f"Render failed: {failures[0]}") from failures[0]
    bad = int(np.count_nonzero(writes != 1))
    if bad:
        raise RenderError(f"{bad} pixels were not written exactly once")

    logger.info("[Frame %s] CPU render done in %.2fs", frame_id, time.perf_counter() - start)
    return buf
