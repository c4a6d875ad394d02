"""
Run several backend calls at once from a Streamlit page.
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, List, Optional

from streamlit.runtime.scriptrunner import add_script_run_ctx, get_script_run_ctx

from utils.logging_config import get_logger

logger = get_logger(__name__)


def run_concurrently(*calls: Callable[[], Any], max_workers: Optional[int] = None) -> List[Any]:
    """
    Execute zero-argument callables in parallel and return their results in order

    Worker threads inherit the caller's script-run context so they may touch
    session state. Every call is waited for before anything is raised, so a
    late completion never lands after the caller has moved on.

    Raises:
        The first script-control signal (a BaseException that is not an
        Exception, e.g. a rerun requested by a navigation) if any call raised
        one, otherwise the first ordinary exception in call order.
    """
    if not calls:
        return []

    ctx = get_script_run_ctx()

    def bind(call: Callable[[], Any]) -> Callable[[], Any]:
        def run():
            if ctx is not None:
                add_script_run_ctx(threading.current_thread(), ctx)
            return call()
        return run

    with ThreadPoolExecutor(max_workers=max_workers or len(calls)) as pool:
        futures = [pool.submit(bind(call)) for call in calls]

    results: List[Any] = []
    control_signal: Optional[BaseException] = None
    first_error: Optional[BaseException] = None
    for future in futures:
        error = future.exception()
        if error is None:
            results.append(future.result())
            continue
        results.append(None)
        if not isinstance(error, Exception):
            control_signal = control_signal or error
        else:
            first_error = first_error or error

    if control_signal is not None:
        raise control_signal
    if first_error is not None:
        logger.debug(f"Concurrent call failed: {type(first_error).__name__}")
        raise first_error
    return results
