import os

import pytest


@pytest.fixture
def require_root() -> None:
    if not hasattr(os, "geteuid"):
        pytest.skip("requires POSIX geteuid support")
    if os.geteuid() != 0:
        pytest.skip("requires root privileges for raw IPv4 sockets")
