"""Process termination for procmon."""

import logging

import psutil

logger = logging.getLogger(__name__)

KILL_GRACE = 0.2  # seconds between SIGTERM and SIGKILL


def terminate_process(pid: int, grace: float = KILL_GRACE) -> bool:
    """
    Terminate a process, escalating to SIGKILL if it outlives the grace period.

    Returns False if the pid does not exist or may not be signalled. A process
    that exits on its own after the first signal counts as terminated.
    """
    try:
        proc = psutil.Process(pid)
        proc.terminate()
    except psutil.NoSuchProcess:
        logger.debug("Cannot terminate pid %d: no such process", pid)
        return False
    except psutil.AccessDenied:
        logger.debug("Cannot terminate pid %d: access denied", pid)
        return False

    try:
        proc.wait(timeout=grace)
        return True
    except psutil.TimeoutExpired:
        pass
    except psutil.NoSuchProcess:
        return True

    try:
        proc.kill()
    except psutil.NoSuchProcess:
        return True
    except psutil.AccessDenied:
        logger.debug("Cannot kill pid %d: access denied", pid)
        return False
    return True
