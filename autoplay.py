# autoplay.py
"""
Periodic stepping of an engine.

The engine stays a plain synchronous ``step()``; this module only decides
when to call it. ``start()`` runs steps on a daemon thread, ``stop()``
cancels it, and ``run_blocking()`` drives the same loop inline.
"""

import threading
import time

from config import DEFAULT_INTERVAL_MS, MIN_INTERVAL_MS


class Autoplay:
    """
    Step an engine every ``interval_ms`` until its sequence is exhausted
    or ``stop()`` is called.

    Attributes:
        engine: Any engine exposing ``step()``, ``state`` and ``log``
        interval (float): Seconds between steps, never below 50 ms
    """

    def __init__(self, engine, interval_ms=DEFAULT_INTERVAL_MS):
        self.engine = engine
        self.interval_ms = max(MIN_INTERVAL_MS, int(interval_ms or DEFAULT_INTERVAL_MS))
        self._cancel = threading.Event()
        self._lock = threading.Lock()
        self._thread = None
        self.last = None

    @property
    def interval(self):
        return self.interval_ms / 1000.0

    @property
    def running(self):
        return self._thread is not None and self._thread.is_alive()

    def _finished(self, outcome):
        if outcome is not None and outcome.exhausted:
            return True
        queue = getattr(self.engine, "queue", None)
        return queue is not None and queue.exhausted

    def _tick(self):
        with self._lock:
            self.last = self.engine.step()
            return self.last

    def _loop(self):
        while not self._cancel.wait(self.interval):
            if self._finished(self._tick()):
                break
        self.engine.state.running = False
        self.engine.log.append("Autoplay stopped")

    def start(self):
        if self.running:
            return
        self._cancel.clear()
        self.engine.state.running = True
        self.engine.log.append(f"Autoplay started (ms={self.interval_ms})")
        self._thread = threading.Thread(target=self._loop, daemon=True)
        self._thread.start()

    def stop(self):
        """Cancel the pending tick and wait for any step in flight."""
        thread = self._thread
        if thread is None:
            return
        self._cancel.set()
        if thread is not threading.current_thread():
            thread.join()
        self._thread = None

    def toggle(self):
        if self.running:
            self.stop()
        else:
            self.start()

    def run_blocking(self, max_steps=None, on_step=None, sleep=time.sleep):
        """
        Run the loop on the calling thread.

        Args:
            max_steps (int): Upper bound on steps, None for no bound
            on_step (callable): Called with each outcome, e.g. to redraw
            sleep (callable): Pause between steps

        Returns:
            list: Outcomes of every step taken
        """
        outcomes = []
        self.engine.state.running = True
        self.engine.log.append(f"Autoplay started (ms={self.interval_ms})")
        try:
            while max_steps is None or len(outcomes) < max_steps:
                outcome = self._tick()
                outcomes.append(outcome)
                if on_step is not None:
                    on_step(outcome)
                if self._finished(outcome):
                    break
                sleep(self.interval)
        finally:
            self.engine.state.running = False
            self.engine.log.append("Autoplay stopped")
        return outcomes
