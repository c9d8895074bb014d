# uisync/context.py
"""
@file context.py
@brief Per-thread action tracking for facade log messages.
"""

from __future__ import annotations

import functools
import logging
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Generator, List, Optional
from uuid import uuid4

from .logconfig import log_success

logger = logging.getLogger(__name__)


@dataclass
class ActionContext:
    """Context information for a single action."""
    action_id: str = field(default_factory=lambda: str(uuid4())[:8])
    action_name: str = ""
    target: Optional[str] = None
    start_time: float = field(default_factory=time.monotonic)
    parent_context: Optional[ActionContext] = None

    @property
    def description(self) -> str:
        if self.target:
            return f"{self.action_name} on '{self.target}'"
        return self.action_name

    @property
    def elapsed_time(self) -> float:
        return time.monotonic() - self.start_time

    def format_trace(self) -> str:
        """Format the chain of enclosing actions, innermost first."""
        lines = ["Action trace (most recent first):"]
        current: Optional[ActionContext] = self
        prefix = "  X "
        while current is not None:
            lines.append(f"{prefix}{current.description} [{current.elapsed_time:.2f}s]")
            current = current.parent_context
            prefix = "  -> "
        return "\n".join(lines)


class ActionContextManager:
    """Thread-local stack of running actions."""

    _local = threading.local()

    @classmethod
    def _get_stack(cls) -> List[ActionContext]:
        if not hasattr(cls._local, "stack"):
            cls._local.stack = []
        return cls._local.stack

    @classmethod
    def current(cls) -> Optional[ActionContext]:
        stack = cls._get_stack()
        return stack[-1] if stack else None

    @classmethod
    @contextmanager
    def action(cls, action_name: str, target: Optional[str] = None) -> Generator[ActionContext, None, None]:
        stack = cls._get_stack()
        context = ActionContext(
            action_name=action_name,
            target=target,
            parent_context=stack[-1] if stack else None,
        )
        stack.append(context)
        try:
            yield context
        finally:
            stack.pop()

    @classmethod
    def clear(cls) -> None:
        """Clear the context stack (useful for test cleanup)."""
        cls._local.stack = []


def tracked_action(action_name: Optional[str] = None, fallback: Any = None, has_target: bool = True):
    """
    Decorator for facade methods: track, log, and never raise.

    Exceptions are logged with the action trace and turned into
    ``fallback``. ``fallback`` may be a callable producing a fresh value.
    With ``has_target`` the first positional argument after ``self`` (or
    the ``target`` keyword) names the action's target in log lines.
    """
    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        name = action_name or func.__name__

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            target = None
            if has_target:
                target = kwargs.get("target")
                if target is None and len(args) > 1:
                    target = args[1]
            target_text = str(target) if target is not None else None

            with ActionContextManager.action(name, target=target_text) as context:
                try:
                    result = func(*args, **kwargs)
                except Exception as exc:
                    logger.error(
                        "%s failed after %.3fs: %s: %s\n%s",
                        context.description, context.elapsed_time,
                        type(exc).__name__, exc, context.format_trace(),
                    )
                    return fallback() if callable(fallback) else fallback
                log_success(logger, "%s [%s] done in %.3fs", context.description, context.action_id, context.elapsed_time)
                return result

        return wrapper

    return decorator
