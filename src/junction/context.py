"""Dispatch-scoped context via ContextVar.

Provides ``validator_var``: the dispatching app's ``Validator``. The
dispatcher sets it around each handler call and resets it afterwards, so
``FormRequest`` and ``Controller.validate`` see the app's store and
``strict_rules`` setting.

``ContextVar`` is task-local under asyncio, and anyio copies the context
into worker threads, so offloaded sync handlers see it too.
"""

from __future__ import annotations

from contextvars import ContextVar
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from junction.validation.validator import Validator

validator_var: ContextVar[Validator] = ContextVar("junction_validator")
"""The app's validator. Set by the dispatcher before calling a handler."""


def current_validator() -> Validator:
    """Return the dispatching app's validator.

    Outside dispatch (a handler called directly in a test, say) a default
    ``Validator`` with no store is returned.
    """
    validator = validator_var.get(None)
    if validator is not None:
        return validator
    from junction.validation.validator import Validator

    return Validator()
