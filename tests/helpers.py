"""Shared fixtures for the santa-rooms tests."""
import datetime
import os
import shutil
import tempfile
import unittest

UTC = datetime.timezone.utc


class TmpDirMixin(unittest.TestCase):
    """Creates a fresh temp directory for each test and cd's into it."""

    def setUp(self):
        self.tmp = tempfile.mkdtemp()
        self._orig = os.getcwd()
        os.chdir(self.tmp)

    def tearDown(self):
        os.chdir(self._orig)
        shutil.rmtree(self.tmp, ignore_errors=True)

    def _path(self, name: str) -> str:
        return os.path.join(self.tmp, name)


class FakeClock:
    """Deterministic clock; call :meth:`advance` to move time forward."""

    def __init__(self, start=None):
        self.now = start or datetime.datetime(2024, 12, 1, 12, 0, tzinfo=UTC)

    def __call__(self):
        return self.now

    def advance(self, seconds: int = 60) -> None:
        self.now += datetime.timedelta(seconds=seconds)
