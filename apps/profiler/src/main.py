"""
Entrypoint for the profiler service.

This:
- initializes observability (via BaseService)
- wires the behavior store, classifier and services
- serves the HTTP API
"""

from apps.profiler.src.core.bootstrap import bootstrap


def main() -> None:
    service = bootstrap()
    service.run_sync()


if __name__ == "__main__":
    main()
