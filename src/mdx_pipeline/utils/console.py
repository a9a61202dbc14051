"""
Logging and Console Utilities.

All pipeline output goes through the standard `logging` library on the
`mdx_pipeline` logger, rendered by a `rich` `RichHandler`.

The handler writes to a swappable console: `set_console` redirects every
subsequent log line (e.g. into a `Console(file=io.StringIO())` when an
embedding application wants to capture compiler diagnostics).

Attributes:
    console (_ConsoleProxy): A stable reference to the active Rich Console.
    logger (logging.Logger): The package logger.
"""

import logging
from typing import Any

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

# Between INFO and WARNING
SUCCESS_LEVEL_NUM = 25
logging.addLevelName(SUCCESS_LEVEL_NUM, "SUCCESS")

LOGGER_NAME = "mdx_pipeline"
logger = logging.getLogger(LOGGER_NAME)

_THEME = Theme(
  {
    "logging.level.success": "green",
    "info": "dim cyan",
    "warning": "yellow",
    "error": "bold red",
    "success": "green",
    "path": "bold blue",
    "code": "bold magenta",
  }
)


class _ConsoleProxy:
  """
  Forwards to a replaceable `rich.console.Console` backend.

  Modules import the proxy once; swapping the backend also re-attaches the
  log handler so that log records follow the console.
  """

  def __init__(self) -> None:
    self._backend: Console = Console(theme=_THEME, stderr=True)
    self._configure_logging()

  @property
  def backend(self) -> Console:
    return self._backend

  def set_backend(self, new_console: Console) -> None:
    self._backend = new_console
    self._configure_logging()

  def reset(self) -> None:
    self._backend = Console(theme=_THEME, stderr=True)
    self._configure_logging()

  def _configure_logging(self) -> None:
    for handler in list(logger.handlers):
      if isinstance(handler, RichHandler):
        logger.removeHandler(handler)

    logger.addHandler(
      RichHandler(
        console=self._backend,
        show_time=False,
        omit_repeated_times=False,
        show_path=False,
        markup=True,
        rich_tracebacks=True,
      )
    )
    logger.setLevel(logging.INFO)
    logger.propagate = False

  def print(self, *args: Any, **kwargs: Any) -> None:
    self._backend.print(*args, **kwargs)

  def __getattr__(self, name: str) -> Any:
    return getattr(self._backend, name)


console = _ConsoleProxy()


def set_console(new_console: Console) -> None:
  """
  Redirects console output and log records to `new_console`.

  Args:
      new_console (Console): The configured Rich console to use.
  """
  console.set_backend(new_console)


def reset_console() -> None:
  """Restores the default stderr console."""
  console.reset()


def get_console() -> Console:
  """Returns the active console backend."""
  return console.backend


def set_verbosity(level: int) -> None:
  """Sets the minimum level of the package logger (e.g. `logging.WARNING`)."""
  logger.setLevel(level)


def log_debug(msg: str) -> None:
  logger.debug(msg, extra={"markup": False})


def log_info(msg: str) -> None:
  """
  Logs an informational message.

  Args:
      msg (str): The message content. Can include rich markup like [bold].
  """
  logger.info(msg, extra={"markup": True})


def log_success(msg: str) -> None:
  """Logs at the SUCCESS level. The message is printed literally."""
  logger.log(SUCCESS_LEVEL_NUM, msg, extra={"markup": False})


def log_warning(msg: str) -> None:
  """Logs a warning."""
  logger.warning(msg, extra={"markup": False})


def log_error(msg: str) -> None:
  """Logs an error."""
  logger.error(msg, extra={"markup": False})
