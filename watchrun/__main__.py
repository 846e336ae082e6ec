# watchrun/__main__.py

"""Module entry point for ``python -m watchrun``."""
from .main import cli


if __name__ == "__main__":
    raise SystemExit(cli())
