"""
Domain models for querylog.

Defines the immutable record describing one query execution (`LogEntry`),
the typed parameter wrapper (`Tagged`) and the two outcome variants (`Ok`,
`Error`). Records are frozen pydantic models so they compare structurally and
cannot be mutated once the data-access layer has built them.
"""
from __future__ import annotations

from typing import Annotated, Any, Callable, Literal, Optional, Tuple, Union

from pydantic import BaseModel, Field


class Tagged(BaseModel):
    """
    A query parameter carrying an explicit declared type next to its raw value.

    Only `value` is ever rendered; `type` is informational for the driver.
    """

    type: Any = Field(None, description="Declared database type of the parameter.")
    value: Any = Field(None, description="Raw parameter value.")

    model_config = {"frozen": True}

    def __init__(self, type: Any = None, value: Any = None, **data: Any) -> None:
        super().__init__(type=type, value=value, **data)


class Ok(BaseModel):
    """Successful query outcome wrapping the driver result."""

    status: Literal["ok"] = "ok"
    value: Any = None

    model_config = {"frozen": True}

    def __init__(self, value: Any = None, **data: Any) -> None:
        super().__init__(value=value, **data)


class Error(BaseModel):
    """Failed query outcome wrapping the raised exception."""

    status: Literal["error"] = "error"
    error: Any = None

    model_config = {"frozen": True}

    def __init__(self, error: Any = None, **data: Any) -> None:
        super().__init__(error=error, **data)


QueryResult = Annotated[Union[Ok, Error], Field(discriminator="status")]


class LogEntry(BaseModel):
    """
    One query execution, as seen by the data-access layer.

    All times are integer microseconds. `decode_time` and `queue_time` are
    None when the phase does not apply to the execution path, which is not
    the same as a zero duration.
    """

    query: Union[str, Callable[..., str]] = Field(
        ..., description="Query text, or a callable receiving the entry and returning it."
    )
    params: Tuple[Any, ...] = Field((), description="Query parameters in bind order.")
    query_time: int = Field(..., description="Time spent executing the query.")
    decode_time: Optional[int] = Field(None, description="Time spent decoding the result.")
    queue_time: Optional[int] = Field(None, description="Time spent checking out a connection.")
    connection_pid: Any = Field(None, description="Identifier of the executing connection.")
    result: QueryResult = Field(..., description="Outcome of the query.")

    model_config = {
        "frozen": True,
        "arbitrary_types_allowed": True,
    }

    @property
    def ok(self) -> bool:
        return isinstance(self.result, Ok)


__all__ = ["Tagged", "Ok", "Error", "QueryResult", "LogEntry"]
