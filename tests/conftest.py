from __future__ import annotations

import pytest


def pytest_configure(config):
    for name in ("engine", "screens", "unit", "ui"):
        config.addinivalue_line("markers", f"{name}: {name} tests")


class FakeClock:
    def __init__(self, start: float = 100.0):
        self.now = float(start)

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += float(seconds)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def scenario_elements():
    return [
        {"bounds": "[0,0][100,50]", "is_clickable": True},
        {"bounds": "[10,10][50,30]", "is_clickable": False},
    ]


@pytest.fixture
def mixed_elements():
    return [
        {"bounds": "[0,0][10,5]", "text": "fifty", "resource_id": "a:id/fifty"},
        {"bounds": "[0,0][20,10]", "text": "two hundred", "resource_id": "a:id/big"},
        {"bounds": "[0,0][5,2]", "text": "ten", "resource_id": "a:id/ten"},
        {"bounds": "not a rect", "text": "broken"},
        {"text": "no bounds at all"},
    ]
