class Observable:
    """Push snapshots to subscribers after every state change"""

    def __init__(self):
        self._observers = []

    def subscribe(self, observer):
        """Register ``observer(snapshot)``; returns a callable that unsubscribes it"""
        self._observers.append(observer)

        def unsubscribe():
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def snapshot(self):
        raise NotImplementedError

    def _notify(self):
        if not self._observers:
            return
        snapshot = self.snapshot()
        for observer in list(self._observers):
            observer(snapshot)
