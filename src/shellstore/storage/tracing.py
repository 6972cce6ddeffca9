"""shellstore object store OpenTelemetry tracing integration.

Provides a tracing decorator for gateway operations.

Span attributes carry the bucket, a SHA256 of the object key and the backend
name. Raw keys are never exported; identifiers may be meaningful to tenants.
"""

from __future__ import annotations

import functools
import hashlib
import inspect
import logging
import os
from collections.abc import Callable, Iterator
from typing import Any, TypeVar, cast

from opentelemetry import trace
from opentelemetry.trace import Span

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

SHELLSTORE_OTEL_ENABLED_ENV = "SHELLSTORE_OTEL_ENABLED"


def _get_env_bool(key: str, default: bool = False) -> bool:
    """Get boolean from environment variable."""
    val = os.environ.get(key, "").strip().lower()
    if val in ("1", "true", "yes"):
        return True
    if val in ("0", "false", "no", ""):
        return default
    return default


def _is_otel_enabled() -> bool:
    """Check if OpenTelemetry tracing is enabled."""
    return _get_env_bool(SHELLSTORE_OTEL_ENABLED_ENV, False)


def _set_call_attributes(span: Span, store: Any, args: tuple[Any, ...]) -> None:
    """Record backend, bucket (first argument) and hashed key (second argument)."""
    span.set_attribute("storage.backend", getattr(store, "backend_name", "unknown"))
    if args and isinstance(args[0], str):
        span.set_attribute("shellstore.bucket", args[0])
    if len(args) > 1 and isinstance(args[1], str):
        key_sha256 = hashlib.sha256(args[1].encode("utf-8")).hexdigest()
        span.set_attribute("shellstore.object_key_sha256", key_sha256)


def _mark_error(span: Span, error: Exception) -> None:
    span.set_attribute("error", True)
    span.set_attribute("error.type", type(error).__name__)


def traced_storage_operation(operation: str) -> Callable[[F], F]:
    """Decorator to trace object store operations with OpenTelemetry.

    The first positional argument, when present, is recorded as the bucket
    and the second as the object key. Generator methods get one span that
    stays open until the generator finishes; it is not made current, since
    the caller runs between items.

    Args:
        operation: Operation name (e.g., "put", "get", "list_keys").

    Returns:
        Decorated function that emits spans when tracing is enabled.
    """
    span_name = f"shellstore.object_store.{operation}"

    def decorator(func: F) -> F:
        if inspect.isgeneratorfunction(func):

            @functools.wraps(func)
            def generator_wrapper(self: Any, *args: Any, **kwargs: Any) -> Iterator[Any]:
                if not _is_otel_enabled():
                    yield from func(self, *args, **kwargs)
                    return

                span = trace.get_tracer("shellstore.object_store").start_span(span_name)
                _set_call_attributes(span, self, args)
                count = 0
                try:
                    for item in func(self, *args, **kwargs):
                        count += 1
                        yield item
                except Exception as e:
                    _mark_error(span, e)
                    raise
                finally:
                    span.set_attribute("shellstore.result_count", count)
                    span.end()

            return cast(F, generator_wrapper)

        @functools.wraps(func)
        def wrapper(self: Any, *args: Any, **kwargs: Any) -> Any:
            if not _is_otel_enabled():
                return func(self, *args, **kwargs)

            tracer = trace.get_tracer("shellstore.object_store")
            with tracer.start_as_current_span(span_name) as span:
                _set_call_attributes(span, self, args)
                try:
                    result = func(self, *args, **kwargs)
                except Exception as e:
                    _mark_error(span, e)
                    raise

                if isinstance(result, list):
                    span.set_attribute("shellstore.result_count", len(result))
                return result

        return cast(F, wrapper)

    return decorator
