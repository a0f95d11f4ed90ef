"""
Verifier-side checks over revealed attribute values.

These are business rules, not cryptography: they run only after a
presentation has verified, on the values it revealed.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Mapping, Union

from .values import AttributeValue

OPERATORS = ("==", ">=", "<=")


@dataclass(frozen=True)
class Requirement:
    """
    A comparison the verifier requires of one attribute.

    Example:
        >>> Requirement(">=", 18).is_met_by(AttributeValue.of(25))
        True
    """

    op: str
    target: Union[int, str]

    def __post_init__(self) -> None:
        if self.op not in OPERATORS:
            raise ValueError(f"unsupported operator {self.op!r}; use one of {OPERATORS}")
        if isinstance(self.target, bool) or not isinstance(self.target, (int, str)):
            raise TypeError("requirement target must be int or str")

    @classmethod
    def parse(cls, op: str, text: str) -> "Requirement":
        """Build a requirement from user text; integral text becomes an int."""
        stripped = text.strip()
        try:
            return cls(op, int(stripped))
        except ValueError:
            return cls(op, stripped)

    def is_met_by(self, value: AttributeValue) -> bool:
        if value.is_int and isinstance(self.target, int):
            actual, target = value.value, self.target
        else:
            # mixed kinds compare as text
            actual, target = str(value.value), str(self.target)
        if self.op == "==":
            return actual == target
        if self.op == ">=":
            return actual >= target
        return actual <= target


def evaluate_requirements(
    revealed: Mapping[str, AttributeValue],
    requirements: Mapping[str, Requirement],
) -> Dict[str, bool]:
    """
    Evaluate each requirement against the revealed values.

    Returns one entry per revealed attribute and per requirement. Revealed
    attributes without a requirement pass; requirements on attributes that
    were not revealed fail.
    """
    results: Dict[str, bool] = {name: True for name in revealed}
    for name, requirement in requirements.items():
        value = revealed.get(name)
        results[name] = value is not None and requirement.is_met_by(value)
    return results
