from __future__ import annotations

from datetime import date

from ..core.constants import BASE_GENERATION, BASE_GENERATION_ENTRANCE_YEAR, FISCAL_YEAR_START_MONTH


def fiscal_year(today: date) -> int:
    return today.year if today.month >= FISCAL_YEAR_START_MONTH else today.year - 1


def generation_to_grade(generation: int, *, today: date) -> str:
    """Render a cohort number as a school grade label.

    Members in their first three years show as ``N年生``; anyone else keeps the
    cohort label ``N期生``.
    """

    entrance_year = BASE_GENERATION_ENTRANCE_YEAR - (BASE_GENERATION - int(generation))
    grade = fiscal_year(today) - entrance_year + 1
    if 1 <= grade <= 3:
        return f"{grade}年生"
    return f"{generation}期生"
