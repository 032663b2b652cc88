# finance_engine/data_model/interfaces/i_to_dict.py
from __future__ import annotations

from typing import Union

from typing_extensions import Protocol, TypeAlias, runtime_checkable

# Values are already JSON friendly: Decimal amounts and dates are emitted as strings.
RecursiveDictValue: TypeAlias = Union[
    str, int, float, bool, None, list["RecursiveDictValue"], dict[str, "RecursiveDictValue"]
]


@runtime_checkable
class IToDict(Protocol):
    def to_dict(self) -> dict[str, RecursiveDictValue]: ...
