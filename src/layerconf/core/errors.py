"""
Error types for layerconf.

Setup mistakes (bad arguments, a second push provider on one registry, a
settings unit without a section name) raise ConfigurationError before anything
is built. A source that cannot be fetched raises ProviderError and the
provider keeps serving its previous data. Malformed JSON or YAML raises
ParseError.

CLI exit codes:
    0    success
    10   configuration error
    11   provider error
    12   parse error
    130  interrupted
    127  anything else
"""

from __future__ import annotations

import functools
import sys
import traceback
from enum import IntEnum
from typing import Any, Callable, TypeVar

import structlog

logger = structlog.get_logger()


class ExitCode(IntEnum):
    SUCCESS = 0
    CONFIG_ERROR = 10
    PROVIDER_ERROR = 11
    PARSE_ERROR = 12
    INTERRUPTED = 130
    UNKNOWN_ERROR = 127


class LayerconfError(Exception):
    """Base error; carries a message, structured details and an exit code."""

    exit_code: ExitCode = ExitCode.UNKNOWN_ERROR

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details: dict[str, Any] = dict(details or {})


class ConfigurationError(LayerconfError):
    """The engine was wired up incorrectly."""

    exit_code = ExitCode.CONFIG_ERROR


class ProviderError(LayerconfError):
    """A provider failed to fetch its source."""

    exit_code = ExitCode.PROVIDER_ERROR


class ParseError(LayerconfError):
    """A JSON or YAML document could not be parsed."""

    exit_code = ExitCode.PARSE_ERROR


class ReloadError(ProviderError):
    """One or more providers failed during a root-wide reload."""

    def __init__(self, failures: dict[str, BaseException]):
        names = sorted(failures)
        super().__init__(
            f"Reload failed for {len(failures)} provider(s): {', '.join(names)}",
            details={"failed_providers": names},
        )
        self.failures = failures


def format_error_message(error: LayerconfError) -> str:
    """``message (key=value, ...)`` for display."""
    if not error.details:
        return error.message
    rendered = ", ".join(f"{key}={value}" for key, value in error.details.items())
    return f"{error.message} ({rendered})"


def _exit_code_for(exc: BaseException) -> int:
    if isinstance(exc, LayerconfError):
        return exc.exit_code
    if isinstance(exc, KeyboardInterrupt):
        return ExitCode.INTERRUPTED
    return ExitCode.UNKNOWN_ERROR


F = TypeVar("F", bound=Callable[..., int])


def main_with_error_handling(
    *,
    show_traceback: bool = False,
    log_errors: bool = True,
) -> Callable[[F], F]:
    """Wrap a CLI entry point so every failure becomes an exit code.

    LayerconfError subclasses map to their own ``exit_code``; Ctrl-C maps to
    130 and any other exception to 127.
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> int:
            try:
                return func(*args, **kwargs)
            except (Exception, KeyboardInterrupt) as exc:
                code = _exit_code_for(exc)
                if log_errors:
                    if isinstance(exc, KeyboardInterrupt):
                        logger.info("command_interrupted")
                    elif isinstance(exc, LayerconfError):
                        logger.error(
                            "command_error",
                            error_type=type(exc).__name__,
                            error=format_error_message(exc),
                            exit_code=code,
                        )
                    else:
                        logger.error(
                            "unexpected_error",
                            error_type=type(exc).__name__,
                            error=str(exc),
                            exit_code=code,
                        )
                if show_traceback and not isinstance(exc, KeyboardInterrupt):
                    traceback.print_exc(file=sys.stderr)
                return code

        return wrapper  # type: ignore[return-value]

    return decorator
