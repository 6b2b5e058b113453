from __future__ import annotations

import threading
import time

from pipewright.state.argument import string_argument
from pipewright.state.observer import Observer

ADDR = string_argument("db-addr")


def test_wait_for_value_written_later(fs_state):
    observer = Observer(fs_state)

    def publish():
        time.sleep(0.05)
        observer.set_string(ADDR, "localhost:5432")

    t = threading.Thread(target=publish)
    t.start()
    assert observer.wait_for(ADDR, timeout=5)
    t.join()
    assert observer.get_string(ADDR) == "localhost:5432"


def test_wait_for_existing_value(fs_state):
    fs_state.set_string(ADDR, "ready")
    assert Observer(fs_state).wait_for(ADDR, timeout=0)


def test_wait_for_times_out(fs_state):
    assert Observer(fs_state).wait_for(ADDR, timeout=0.01) is False
