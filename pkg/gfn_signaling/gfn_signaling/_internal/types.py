from __future__ import annotations

import logging
import typing

import pydantic
import typing_extensions

if typing.TYPE_CHECKING:
    # https://github.com/python/typeshed/issues/7855
    Logger = typing.Union[logging.Logger, logging.LoggerAdapter[logging.Logger]]
else:
    Logger = object

T = typing.TypeVar("T")


class EmptySentinel:
    """
    Marks a field that was absent (or had an unusable type) on the wire, as
    opposed to one that was explicitly null.
    """

    def __repr__(self) -> str:
        return "empty_sentinel"


empty_sentinel = EmptySentinel()


class BaseModel(pydantic.BaseModel):
    model_config = pydantic.ConfigDict(
        populate_by_name=True,
        strict=True,
    )

    @classmethod
    def from_raw(
        cls: type[BaseModelT],
        raw: object,
    ) -> typing.Union[BaseModelT, Exception]:
        try:
            if isinstance(raw, (str, bytes)):
                return cls.model_validate_json(raw)

            return cls.model_validate(raw)
        except Exception as err:
            return err

    def to_json(self) -> MaybeError[str]:
        try:
            return self.model_dump_json(by_alias=True, exclude_none=True)
        except Exception as err:
            return err


BaseModelT = typing.TypeVar("BaseModelT", bound=BaseModel)

MaybeError: typing_extensions.TypeAlias = typing.Union[T, Exception]


def is_dict(v: object) -> typing.TypeGuard[dict[object, object]]:
    return isinstance(v, dict)
