# Test setup: force the offscreen Qt platform and provide a fallback 'qtbot'
# fixture when pytest-qt is not installed. If pytest-qt is present its fixture wins.

import os
import sys
import time

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

try:  # If pytest-qt present, do nothing (its fixture will be used)
    import pytestqt  # type: ignore  # noqa: F401
except Exception:  # pragma: no cover
    try:
        from PyQt6.QtWidgets import QApplication
    except Exception:  # pragma: no cover
        QApplication = None  # type: ignore

    @pytest.fixture
    def qtbot():  # type: ignore
        if QApplication is None:
            pytest.skip("PyQt6 not available")
        app = QApplication.instance() or QApplication(sys.argv)  # type: ignore
        widgets = []

        class Bot:
            def addWidget(self, w):  # mimic pytest-qt API subset
                widgets.append(w)

            def waitUntil(self, predicate, timeout=5000):
                deadline = time.monotonic() + timeout / 1000.0
                while not predicate():
                    if time.monotonic() > deadline:
                        raise AssertionError("waitUntil timed out")
                    app.processEvents()
                    time.sleep(0.005)

        yield Bot()
        for w in widgets:
            w.close()


@pytest.fixture
def grid_rows():
    """Small row set shared by scenario-style tests."""
    return [
        {"id": 1, "name": "Bravo", "amount": 50},
        {"id": 2, "name": "Alpha", "amount": 150},
        {"id": 3, "name": "Charlie", "amount": 100},
    ]
