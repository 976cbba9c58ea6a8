import threading
import weakref


class CalculationResetEvent:
    """
    Broadcast fired by the surrounding simulation between timesteps to tell
    memoizing objects that their stored calculations are stale.

    Bound methods are held through weak references, so an object that is
    garbage collected without detaching is dropped on the next fire.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._hooks = []

    def _reference(self, callback):
        if hasattr(callback, "__self__"):
            return weakref.WeakMethod(callback)
        return lambda: callback

    def attach(self, callback, label=None):
        with self._lock:
            self._hooks.append((self._reference(callback), label))

    def detach(self, callback):
        with self._lock:
            for i, (ref, _) in enumerate(self._hooks):
                if ref() == callback:
                    del self._hooks[i]
                    return
        raise ValueError(f"{callback} is not attached to this event.")

    def is_attached(self, callback):
        with self._lock:
            return any(ref() == callback for ref, _ in self._hooks)

    def labels(self):
        with self._lock:
            return [label for ref, label in self._hooks if ref() is not None]

    def fire(self):
        with self._lock:
            self._hooks = [(ref, label) for ref, label in self._hooks if ref() is not None]
            callbacks = [ref() for ref, _ in self._hooks]

        for callback in callbacks:
            if callback is not None:
                callback()


# Global event the simulation fires once per timestep / tree pass.
calculation_reset_event = CalculationResetEvent()
