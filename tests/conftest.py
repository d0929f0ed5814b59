import pytest

import viewer


class Recorder:
    """
    Stands in for the visdom client; remembers every call.
    """

    def __init__(self):
        self.calls = []

    def __getattr__(self, name):
        def record(*args, **kwargs):
            self.calls.append((name, args, kwargs))
        return record

    def names(self):
        return [name for name, _, _ in self.calls]


@pytest.fixture
def recorder(monkeypatch):
    r = Recorder()
    monkeypatch.setattr(viewer, '_vis', r)
    return r
