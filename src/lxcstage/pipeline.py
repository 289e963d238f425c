# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Ordered registry of synchronous step functions.

Steps register themselves with ``@pipeline.step(order=N)`` at import
time, so the set of steps is whatever modules the owning package
imports.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Generic, TypeVar, overload

_Ctx = TypeVar("_Ctx")

_StepFn = Callable[[_Ctx], None]

_DEFAULT_ORDER = 500


class Pipeline(Generic[_Ctx]):
    """Steps sorted by ``(order, registration)``, all taking one context.

    Orders are spaced by 100 in this package; ties keep the order in
    which the steps were decorated.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._entries: list[tuple[int, int, _StepFn[_Ctx]]] = []

    @overload
    def step(self, fn: _StepFn[_Ctx]) -> _StepFn[_Ctx]: ...
    @overload
    def step(self, *, order: int) -> Callable[[_StepFn[_Ctx]], _StepFn[_Ctx]]: ...

    def step(
        self,
        fn: _StepFn[_Ctx] | None = None,
        *,
        order: int = _DEFAULT_ORDER,
    ) -> _StepFn[_Ctx] | Callable[[_StepFn[_Ctx]], _StepFn[_Ctx]]:
        """Decorator registering a step, bare or as ``step(order=...)``."""
        def _register(f: _StepFn[_Ctx]) -> _StepFn[_Ctx]:
            self._entries.append((order, len(self._entries), f))
            return f

        return _register(fn) if fn is not None else _register

    def steps(self) -> list[_StepFn[_Ctx]]:
        """Registered steps in execution order."""
        return [f for _order, _seq, f in sorted(self._entries, key=lambda e: e[:2])]

    def run(self, ctx: _Ctx) -> None:
        for fn in self.steps():
            fn(ctx)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        ordered = sorted(self._entries, key=lambda e: e[:2])
        names = ", ".join(f"{f.__name__}({order})" for order, _seq, f in ordered)
        return f"Pipeline({self.name!r}, [{names}])"
