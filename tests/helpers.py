import os

FIXTURES_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'fixtures')


def read_fixture(name: str) -> bytes:
    with open(os.path.join(FIXTURES_DIR, name), 'rb') as f:
        return f.read()
