"""Decorators for CLI commands."""

import logging
import os
from functools import wraps
from typing import Callable, TypeVar

import typer
from rich.markup import escape

from ..errors import ProvisionError
from ..output import out

logger = logging.getLogger(__name__)

R = TypeVar("R")


def require_root(func: Callable[..., R]) -> Callable[..., R]:
    """Decorator that refuses to run unless the effective uid is 0."""
    @wraps(func)
    def wrapper(*args: object, **kwargs: object) -> R:
        if os.geteuid() != 0:
            out.error("This command must be run as root.")
            out.hint("Run it again with sudo")
            raise typer.Exit(1)
        return func(*args, **kwargs)
    return wrapper


def handle_provision_errors(func: Callable[..., R]) -> Callable[..., R]:
    """Decorator that turns a ProvisionError into a message and exit code 1."""
    @wraps(func)
    def wrapper(*args: object, **kwargs: object) -> R:
        try:
            return func(*args, **kwargs)
        except ProvisionError as e:
            logger.debug("Command failed", exc_info=True)
            out.error(escape(f"{e.stage} failed: {e}"))
            raise typer.Exit(1)
    return wrapper
