import threading


class ReadinessGate:
    """Write-once flag telling request handlers whether the face models are loaded."""

    def __init__(self):
        self._ready = threading.Event()

    def is_ready(self) -> bool:
        return self._ready.is_set()

    def mark_ready(self):
        # There is no way back to "not ready" for the lifetime of the process
        self._ready.set()
