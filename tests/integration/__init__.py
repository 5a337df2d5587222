"""Integration tests that drive the ``warden`` CLI as a subprocess."""
