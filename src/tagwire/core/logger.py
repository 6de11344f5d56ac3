import logging
import sys
import contextvars
from typing import Literal, Optional

# Context variable to carry the active schema revision across the call chain
_REVISION: contextvars.ContextVar[str] = contextvars.ContextVar("revision", default="-")

Stream = Literal["stdout", "stderr"]


class _RevisionFilter(logging.Filter):
    """Logging filter that injects the active schema revision from contextvars into the record."""

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        record.revision = _REVISION.get()
        return True


class _ConsoleHandler(logging.StreamHandler):
    """Stream handler bound to a ``sys`` stream by name.

    The stream is looked up on every write, so redirecting or capturing
    ``sys.stdout``/``sys.stderr`` after configuration is honoured.
    """

    def __init__(self, target: Stream = "stdout"):
        logging.Handler.__init__(self)
        self.target = target

    @property
    def stream(self):  # type: ignore[override]
        return getattr(sys, self.target)

    @stream.setter
    def stream(self, value) -> None:
        # StreamHandler.setStream assigns here; the target name is what counts.
        pass


def _build_formatter() -> logging.Formatter:
    return logging.Formatter(
        fmt="%(asctime)s | %(levelname)-8s | %(name)s | rev=%(revision)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _find_handler(root: logging.Logger) -> Optional[_ConsoleHandler]:
    for h in root.handlers:
        if isinstance(h, _ConsoleHandler):
            return h
    return None


def configure_root_logger(level: str = "INFO", stream: Optional[Stream] = None) -> None:
    """
    Configure root logger and tagwire-specific logger.

    Root logger stays at INFO to suppress library noise.
    Only tagwire namespace logs are set to the requested level.

    Args:
        level: Log level for tagwire logs (DEBUG, INFO, WARNING, ERROR).
        stream: Where log lines go. Commands that print results on stdout
                pass ``"stderr"`` so their output stays machine-readable.
                Defaults to stdout for a new handler; ``None`` leaves an
                existing handler where it is.

    Safe to call multiple times: the single handler is reused and retargeted.
    """
    root = logging.getLogger()

    handler = _find_handler(root)
    if handler is None:
        handler = _ConsoleHandler(stream or "stdout")
        handler.setFormatter(_build_formatter())
        handler.addFilter(_RevisionFilter())
        handler.setLevel(logging.DEBUG)
        root.addHandler(handler)
        if root.level == logging.NOTSET or root.level > logging.INFO:
            root.setLevel(logging.INFO)
    elif stream is not None:
        handler.target = stream

    logging.getLogger("tagwire").setLevel(getattr(logging, level.upper(), logging.INFO))


def get_logger(name: str = "tagwire") -> logging.Logger:
    """Module logger; output is only set up by :func:`configure_root_logger`."""
    return logging.getLogger(name)


def push_revision(revision: Optional[str]) -> Optional[contextvars.Token]:
    """Set the active schema revision in context and return a token for later reset."""
    if not revision:
        return None
    return _REVISION.set(revision)


def reset_revision(token: Optional[contextvars.Token]) -> None:
    """Reset the revision context using the provided token (if any)."""
    if token is None:
        return
    _REVISION.reset(token)
