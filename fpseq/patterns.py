"""
Chainable guarded-value dispatch.

A chain alternates between two immutable states over a fixed discriminant: a Matcher waits for
the next guard, an Expression waits for the result attached to that guard. The first guard equal
to the discriminant wins and its result is frozen for the rest of the chain. Nothing is evaluated
until the chain is closed with a default:

>>> def name(n):
...     return (match(n)
...             .guard(0).result("zero")
...             .guard(1).result("one")
...             .guard(2).result("two")
...             .default("err"))
>>> name(2)
'two'
>>> name(9)
'err'

Results and defaults can also be functions of the discriminant, invoked lazily:

>>> def factorial(n):
...     return match(n).guard(0).result(1).default_with(lambda k: k * factorial(k - 1))
>>> factorial(5)
120
"""

from __future__ import annotations

from typing import Callable, Generic, Optional, TypeVar

In = TypeVar("In")
Out = TypeVar("Out")


class Payload(Generic[In, Out]):
    """The result carried by a chain: nothing yet, a literal value or a deferred function."""

    __slots__ = ()

    def __bool__(self) -> bool:
        return True

    def resolve(self, discriminant: In) -> Out:
        raise NotImplementedError


class NoPayload(Payload):
    __slots__ = ()

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NO_PAYLOAD"


NO_PAYLOAD = NoPayload()


class Literal(Payload[In, Out]):
    __slots__ = ("value",)

    def __init__(self, value: Out) -> None:
        self.value = value

    def resolve(self, discriminant: In) -> Out:
        return self.value

    def __repr__(self) -> str:
        return f"Literal({self.value!r})"


class Deferred(Payload[In, Out]):
    __slots__ = ("func",)

    def __init__(self, func: Callable[[In], Out]) -> None:
        self.func = func

    def resolve(self, discriminant: In) -> Out:
        return self.func(discriminant)

    def __repr__(self) -> str:
        return f"Deferred({self.func!r})"


class _State(Generic[In, Out]):
    __slots__ = ("_input", "_matched", "_payload", "_result_type")

    def __init__(self, input_value: In, matched: bool = False,
                 payload: Payload[In, Out] = NO_PAYLOAD,
                 result_type: Optional[type] = None) -> None:
        self._input = input_value
        self._matched = matched
        self._payload = payload
        self._result_type = result_type

    @property
    def matched(self) -> bool:
        return self._matched

    @property
    def payload(self) -> Payload[In, Out]:
        return self._payload

    def _next(self, state_type, matched, payload=NO_PAYLOAD):
        return state_type(self._input, matched, payload, self._result_type)

    def __repr__(self) -> str:
        return (f"{type(self).__name__}({self._input!r}, matched={self._matched}, "
                f"payload={self._payload!r})")


class Matcher(_State[In, Out]):
    """Chain state waiting for a guard, or for the closing default."""

    __slots__ = ()

    def guard(self, test: In) -> Expression[In, Out]:
        """
        Test the discriminant for equality with test. Once a result has been won the test is
        skipped and the won result is forwarded.
        """
        if self._matched and self._payload:
            return self._next(Expression, True, self._payload)
        return self._next(Expression, test == self._input)

    def default(self, value: Out) -> Out:
        """Close the chain, producing the won result or else value."""
        return self._close(Literal(value))

    def default_with(self, func: Callable[[In], Out]) -> Out:
        """Close the chain, producing the won result or else func(discriminant)."""
        return self._close(Deferred(func))

    def _close(self, fallback: Payload[In, Out]) -> Out:
        payload = self._payload if self._matched and self._payload else fallback
        out = payload.resolve(self._input)
        if self._result_type is not None and not isinstance(out, self._result_type):
            raise TypeError(
                f"match result {out!r} is not an instance of {self._result_type.__name__}"
            )
        return out


class Expression(_State[In, Out]):
    """Chain state waiting for the result of the guard just tested."""

    __slots__ = ()

    def result(self, value: Out) -> Matcher[In, Out]:
        """Attach value as the result of the preceding guard."""
        return self._attach(Literal(value))

    def result_with(self, func: Callable[[In], Out]) -> Matcher[In, Out]:
        """Attach func, called with the discriminant only if this guard's result is produced."""
        return self._attach(Deferred(func))

    def _attach(self, candidate: Payload[In, Out]) -> Matcher[In, Out]:
        if not self._matched:
            return self._next(Matcher, False)
        if self._payload:
            return self._next(Matcher, True, self._payload)
        return self._next(Matcher, True, candidate)


def match(value: In, result_type: Optional[type] = None) -> Matcher[In, Out]:
    """
    Start a match chain on value.

    :param value: the discriminant every guard is compared with
    :param result_type: optional type the produced result must be an instance of
    :return: an unmatched Matcher
    """
    return Matcher(value, False, NO_PAYLOAD, result_type)
