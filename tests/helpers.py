"""Small test doubles shared by several test modules."""

from unittest.mock import MagicMock


class FakeTimer:
    """Monotonic clock the test moves by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def result_with(scalar=None, scalars=None, one=None, count=None, rowcount=None, rows=None):
    """
    Build the object `await session.execute(...)` returns.

    Only the accessors the services use are wired: scalar_one_or_none,
    scalars().all(), one_or_none, scalar, all, rowcount.
    """
    result = MagicMock()
    result.scalar_one_or_none.return_value = scalar
    result.scalars.return_value.all.return_value = scalars or []
    result.one_or_none.return_value = one
    result.scalar.return_value = count
    result.all.return_value = rows or []
    result.rowcount = rowcount
    return result


def flush_assigns_defaults(session):
    """
    Make `await session.flush()` behave like an INSERT for objects passed to `session.add`.

    Real flushes fill client-side column defaults (id, created_at, updated_at,
    booleans); response schemas read those fields straight after the flush.
    """

    async def flush():
        for call in session.add.call_args_list:
            instance = call.args[0]
            for column in instance.__table__.columns:
                if getattr(instance, column.key, None) is None and column.default is not None:
                    default = column.default.arg
                    value = default(None) if callable(default) else default
                    setattr(instance, column.key, value)

    session.flush.side_effect = flush
    return session
