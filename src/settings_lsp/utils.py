from typing import Callable, Generic, TypeVar

T = TypeVar("T")


Listener = Callable[[], None]


class Signal:
    """A change notification without payload."""

    def __init__(self) -> None:
        self._listeners = list[Listener]()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener. Returns a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def fire(self) -> None:
        for listener in list(self._listeners):
            listener()


class Memo(Generic[T]):
    """Holds a value computed on first request, until reset."""

    def __init__(self) -> None:
        self._value: T | None = None
        self._computed = False

    @property
    def is_empty(self) -> bool:
        return not self._computed

    def get_or_compute(self, compute: Callable[[], T]) -> T:
        if not self._computed:
            self._value = compute()
            self._computed = True
        return self._value  # type: ignore[return-value]

    def reset(self) -> None:
        self._value = None
        self._computed = False


class Derived(Generic[T]):
    """A value derived from some source, recomputed lazily after invalidation."""

    def __init__(self, derive: Callable[[], T]) -> None:
        self._derive = derive
        self._memo = Memo[T]()

    @property
    def is_stale(self) -> bool:
        return self._memo.is_empty

    def get(self) -> T:
        return self._memo.get_or_compute(self._derive)

    def invalidate(self) -> None:
        self._memo.reset()
