"""Package layout checks."""

import importlib


def test_packages_without_init_are_namespaces():
    for name in ("nodedeps_cli", "nodedeps_cli.utils"):
        module = importlib.import_module(name)

        assert getattr(module, "__file__", None) is None
