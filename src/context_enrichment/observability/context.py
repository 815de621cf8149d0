"""Per-request log correlation carried in a ContextVar.

asyncio copies the current context into every task it spawns, so the
retrieval fan-out inherits the ids of the enrich call that started it.
"""

from __future__ import annotations

from contextvars import ContextVar, Token
from dataclasses import dataclass, replace
import secrets


@dataclass(frozen=True)
class LogContext:
    trace_id: str
    span_id: str
    user_id: str | None = None

    def as_fields(self) -> dict[str, str]:
        fields = {"trace_id": self.trace_id, "span_id": self.span_id}
        if self.user_id:
            fields["user_id"] = self.user_id
        return fields


_log_context: ContextVar[LogContext | None] = ContextVar("enrichment_log_context", default=None)


def new_trace_id() -> str:
    return secrets.token_hex(16)


def new_span_id() -> str:
    return secrets.token_hex(8)


def current_log_context() -> LogContext:
    """Return the active context, opening an anonymous one if none is bound."""
    context = _log_context.get()
    if context is None:
        context = LogContext(trace_id=new_trace_id(), span_id=new_span_id())
        _log_context.set(context)
    return context


def bind_request(user_id: str | None = None) -> Token[LogContext | None]:
    """Open a fresh correlation scope for one enrichment call.

    Pass the returned token to ``reset_log_context`` when the call finishes.
    """
    return _log_context.set(LogContext(trace_id=new_trace_id(), span_id=new_span_id(), user_id=user_id or None))


def reset_log_context(token: Token[LogContext | None]) -> None:
    _log_context.reset(token)


def bind_span(span_id: str, trace_id: str | None = None) -> None:
    """Point log records at a span, keeping the bound user."""
    context = current_log_context()
    _log_context.set(replace(context, span_id=span_id, trace_id=trace_id or context.trace_id))


def clear_log_context() -> None:
    _log_context.set(None)
