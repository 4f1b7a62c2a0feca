"""
Decorators for CloudEvent message handlers.

``@cloudevent_function`` lets a handler written against canonical
binary-mode messages accept messages from any binding::

    @cloudevent_function()
    def on_order(message):
        return get_type(message), message.payload

    on_order(kafka_message)       # ce_type -> ce-type
    on_order(structured_message)  # application/cloudevents+json -> binary

Works for both sync and async handlers.
"""

from __future__ import annotations

import functools
import inspect
import logging
from typing import Any, Callable, Optional, TypeVar

from cecanon.canonical import to_canonical
from cecanon.converter import JsonPayloadConverter, PayloadConverter
from cecanon.instrumentor import CloudEventInstrumentor
from cecanon.message import Message

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def cloudevent_function(
    converter: Optional[PayloadConverter] = None,
    *,
    instrumentor: Optional[CloudEventInstrumentor] = None,
) -> Callable[[F], F]:
    """
    Canonicalize the message handed to the decorated handler.

    The first positional argument must be a ``Message``; it is replaced by
    its canonical form before the handler runs. Conversion errors propagate
    to the caller.

    Args:
        converter: Payload converter for structured-mode bodies. Defaults
            to ``JsonPayloadConverter``. Ignored when ``instrumentor`` is set.
        instrumentor: Routes conversion through a ``CloudEventInstrumentor``.
            Each call runs in a span named after the handler, opened with
            ``instrumentor.start_span``, and the message is recorded on it.
    """
    payload_converter = converter or JsonPayloadConverter()

    def _convert(args: tuple[Any, ...], span: Any = None) -> tuple[Any, ...]:
        if not args or not isinstance(args[0], Message):
            raise TypeError("cloudevent_function handlers take a Message as first argument")
        if instrumentor is not None:
            message = instrumentor.canonicalize(args[0], span=span)
        else:
            message = to_canonical(args[0], payload_converter)
        logger.debug("Dispatching canonical message %s", message.id)
        return (message,) + tuple(args[1:])

    def decorator(fn: F) -> F:
        if inspect.iscoroutinefunction(fn):

            @functools.wraps(fn)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                if instrumentor is None:
                    return await fn(*_convert(args), **kwargs)
                with instrumentor.start_span(fn.__qualname__) as span:
                    return await fn(*_convert(args, span), **kwargs)

            return async_wrapper  # type: ignore[return-value]

        @functools.wraps(fn)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            if instrumentor is None:
                return fn(*_convert(args), **kwargs)
            with instrumentor.start_span(fn.__qualname__) as span:
                return fn(*_convert(args, span), **kwargs)

        return sync_wrapper  # type: ignore[return-value]

    return decorator


__all__ = ["cloudevent_function"]
