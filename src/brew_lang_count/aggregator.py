from typing import Iterable, List

from .formula import Formula
from .matcher import matches


def count_matches(catalog: Iterable[Formula], query: str) -> int:
    """Count the formulas depending on ``query`` in any category."""
    return sum(1 for formula in catalog if matches(formula, query))


def matching_formula_names(catalog: Iterable[Formula], query: str) -> List[str]:
    """Names of the formulas depending on ``query``, in catalog order."""
    return [formula.name for formula in catalog if matches(formula, query)]


def collect_build_dependencies(catalog: Iterable[Formula]) -> List[str]:
    """
    Gather every distinct build dependency across the catalog.

    Formulas are visited in catalog order and each formula's list in its own
    order; a name keeps the position of its first occurrence.
    """
    seen = set()
    build_dependencies = []
    for formula in catalog:
        for dependency in formula.build_dependencies:
            if dependency not in seen:
                seen.add(dependency)
                build_dependencies.append(dependency)
    return build_dependencies
