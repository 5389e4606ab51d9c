from dataclasses import dataclass, field
from typing import List, Sequence, Tuple
from utils.general_utils import parse_address


@dataclass(frozen=True)
class MatchedCall:
    package_id: str
    module: str
    function: str

    def to_json(self) -> dict:
        return {
            "package_id": self.package_id,
            "module": self.module,
            "function": self.function,
        }


@dataclass(frozen=True)
class PackageMatch:
    matched_calls: List[MatchedCall] = field(default_factory=list)

    @property
    def is_match(self) -> bool:
        return len(self.matched_calls) > 0


def match_package(
    move_calls: Sequence[Tuple[str, str, str]],
    package_filter: str,
) -> PackageMatch:
    """Select the calls into `package_filter`.

    `package_filter` must already be in canonical form. Any module or function
    of the package counts. Raises `MalformedTransactionError` if a call's
    package id is not an address.
    """
    matched_calls = []
    for package_id, module_name, function_name in move_calls:
        if parse_address(package_id) == package_filter:
            matched_calls.append(
                MatchedCall(
                    package_id=package_filter,
                    module=module_name,
                    function=function_name,
                )
            )
    return PackageMatch(matched_calls=matched_calls)
