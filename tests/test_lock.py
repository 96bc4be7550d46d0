import os
import time

import pytest

from kbcore.errors import ValidationError
from kbcore.lock import file_lock, lock_path, with_file_lock


@pytest.fixture
def data_file(tmp_path):
    path = tmp_path / "test.jsonl"
    path.write_text("")
    return path


def test_lock_and_release(data_file):
    assert with_file_lock(data_file, lambda: 42) == 42
    assert not lock_path(data_file).exists()


def test_lock_released_on_error(data_file):
    def fail():
        raise ValidationError("test")

    with pytest.raises(ValidationError):
        with_file_lock(data_file, fail)
    assert not lock_path(data_file).exists()


def test_lock_path_appends_suffix(data_file):
    assert lock_path(data_file) == data_file.parent / "test.jsonl.lock"


def test_lock_exists_while_held(data_file):
    with file_lock(data_file):
        assert lock_path(data_file).exists()
    assert not lock_path(data_file).exists()


def test_stale_lock_is_replaced(data_file):
    stale = lock_path(data_file)
    stale.write_text("")
    old = time.time() - 120
    os.utime(stale, (old, old))

    assert with_file_lock(data_file, lambda: "ok") == "ok"
    assert not stale.exists()