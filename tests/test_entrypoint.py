"""Tests for the ``python -m bicimarket`` entry point."""

import socket
from unittest.mock import patch

from bicimarket import __main__ as entrypoint


class TestEntrypoint:
    def test_port_taken_by_listener(self):
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
            s.bind(("127.0.0.1", 0))
            s.listen(1)
            port = s.getsockname()[1]
            assert entrypoint.port_taken("127.0.0.1", port) is True

    def test_refuses_to_start_when_taken(self):
        with patch.object(entrypoint, "port_taken", return_value=True), \
                patch.object(entrypoint.uvicorn, "run") as run:
            assert entrypoint.main() == 1
        run.assert_not_called()

    def test_starts_uvicorn(self):
        with patch.object(entrypoint, "port_taken", return_value=False), \
                patch.object(entrypoint.uvicorn, "run") as run:
            assert entrypoint.main() == 0
        assert run.call_args.args[0] == "bicimarket.main:app"
