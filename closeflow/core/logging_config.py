import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Attach a single stream handler to the closeflow logger tree.

    Safe to call more than once (the app factory runs per test).
    """
    root = logging.getLogger("closeflow")
    root.setLevel(level.upper())
    if not any(getattr(h, "_closeflow", False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._closeflow = True  # type: ignore[attr-defined]
        root.addHandler(handler)
