"""
Enumerations for the paint catalog.

- Variant: Formula version a formula component belongs to
"""

from enum import Enum


class Variant(str, Enum):
    """
    Mixing-formula version.

    A color may carry up to two independent formulas; every formula
    component belongs to exactly one of them.

    Values:
        V1: First formula version
        V2: Second formula version
    """

    V1 = "V1"
    V2 = "V2"
