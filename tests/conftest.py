"""Global pytest fixtures & helpers.

Adds project root to path and provides fake HTTP objects so fetch and auth
tests never touch the network or sleep for real.
"""
from __future__ import annotations

import json
import os
import sys

import pytest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from desk_treadmill.models import Activity, Credentials, PageResult


class FakeResp:
    """Minimal fake response matching needed parts of requests.Response."""

    def __init__(self, status_code=200, data=None, headers=None, text=None):
        self.status_code = status_code
        self._data = data if data is not None else []
        self._text = text
        self.headers = headers or {}

    def json(self):
        if self._text is not None:
            return json.loads(self._text)
        return self._data

    @property
    def text(self):
        if self._text is not None:
            return self._text
        return json.dumps(self._data)


class FakeSession:
    """Replays scripted responses; an Exception entry is raised instead."""

    def __init__(self, gets=None, posts=None):
        self.gets = list(gets or [])
        self.posts = list(posts or [])
        self.get_calls = []
        self.post_calls = []

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def _next(self, script):
        item = script.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def get(self, url, headers=None, params=None, timeout=None):
        self.get_calls.append({"url": url, "headers": headers, "params": params})
        return self._next(self.gets)

    def post(self, url, data=None, timeout=None):
        self.post_calls.append({"url": url, "data": data})
        return self._next(self.posts)


def make_activity_json(idx, name="Run", distance=1000.0):
    return {"id": idx, "name": name, "distance": distance, "type": "Run"}


def make_activities(count, start=0):
    return [Activity(id=start + i, name="Run", distance=100.0) for i in range(count)]


def make_page(page, count, status=200, start=None):
    first = (page - 1) * 200 if start is None else start
    return PageResult(page=page, status=status, activities=make_activities(count, first))


# --- Fixtures --------------------------------------------------------
@pytest.fixture
def credentials():
    return Credentials(
        client_id="cid",
        client_secret="csec",
        refresh_token="origRT",
        access_token="",
    )


@pytest.fixture
def sleeps():
    """Collects requested sleep durations; pass ``sleeps.append`` as ``sleep``."""

    return []
