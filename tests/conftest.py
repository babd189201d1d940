from __future__ import annotations

import pytest

from cheat_check.documents import DocumentStore, load_documents


@pytest.fixture
def hello_corpus() -> dict:
    return {"A": "hello world", "B": "hello world", "C": "goodbye"}


@pytest.fixture
def hello_store(hello_corpus) -> DocumentStore:
    return load_documents(hello_corpus)


@pytest.fixture
def submissions() -> dict:
    """A small class where a few students clearly shared code."""
    base = "def add(a, b):\n    return a + b\n\nprint(add(2, 3))\n"
    return {
        "alice.py": base,
        "bob.py": base.replace("add", "plus"),
        "carol.py": "import math\n\nprint(math.sqrt(16))\n",
        "dave.py": base,
        "erin.py": "for i in range(10):\n    print(i * i)\n",
        "frank.py": base + "\n# extra credit\n",
        "grace.py": "",
        "heidi.py": "class Point:\n    def __init__(self, x, y):\n        self.x, self.y = x, y\n",
    }
