"""
Exception classes for pyparfait.

Custom exception hierarchy for better error handling and debugging.
"""

from __future__ import annotations

from typing import Any

from pydantic import (
    ValidationError,
    ValidationInfo,
    WrapValidator,
)
from pydantic_core import ErrorDetails, InitErrorDetails, PydanticCustomError


class ParfaitException(Exception):
    """
    Base exception class for all pyparfait-related errors.

    This serves as the root exception that all other pyparfait exceptions inherit
    from, allowing users to catch all pyparfait-specific errors with a single
    except clause.
    """


class HistogramMergeError(ParfaitException):
    """
    Raised when two histograms with different bucket definitions are merged.
    """


class ShapeMismatchError(ParfaitException):
    """
    Raised when a bulk array does not match the number of buckets.
    """


class TransformError(ParfaitException):
    """
    Exception raised when a random variable transform yields an invalid value.

    This typically occurs when:
    - The transform function returns NaN
    - The source distribution produces NaN samples
    """


class NormalizationError(ParfaitException):
    """
    Raised when a sample cannot be normalized (zero or infinite MAD).
    """


def custom_error_msg(custom_messages: dict[str, str]) -> Any:
    r"""
    Customize an error message for pydantic validation errors.

    See https://github.com/pydantic/pydantic/discussions/8468.

    Example:

    >>> from typing import Annotated, Literal
    >>> from pydantic import BaseModel
    >>> Color = Annotated[
    ...     Literal["red", "green"],
    ...     custom_error_msg({"literal_error": "unsupported color '{input}'"}),
    ... ]
    >>> class Model(BaseModel):
    ...     color: Color
    >>> Model(color="blue")  # doctest: +IGNORE_EXCEPTION_DETAIL
    Traceback (most recent call last):
    ...
    pydantic_core._pydantic_core.ValidationError: 1 validation error for Model
    color
      unsupported color 'blue' ...
    """

    def _validator(v: Any, next_: Any, ctx: ValidationInfo) -> Any:
        try:
            return next_(v, ctx)
        except ValidationError as exc:
            new_errors: list[InitErrorDetails | ErrorDetails] = []
            for error in exc.errors():
                custom_message = custom_messages.get(error["type"])

                if custom_message:
                    err_ctx = error.get("ctx", {}).copy()

                    # Add input and ValidationInfo data to context
                    err_ctx["input"] = error["input"]
                    if ctx.data:
                        err_ctx.update(ctx.data)

                    new_error = InitErrorDetails(
                        type=PydanticCustomError(
                            error["type"], custom_message, err_ctx
                        ),
                        loc=error["loc"],
                        input=error["input"],
                    )

                    new_errors.append(new_error)
                else:
                    new_errors.append(error)

            raise ValidationError.from_exception_data(
                title=exc.title,
                line_errors=new_errors,  # type: ignore[arg-type]
            ) from None

    return WrapValidator(_validator)
