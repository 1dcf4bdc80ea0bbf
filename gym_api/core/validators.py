"""Validadores reutilizados por los esquemas de entrada."""
import re
from typing import Callable, Iterable, Optional


TIME_PATTERN = re.compile(r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$")


def validate_time(value: Optional[str]) -> Optional[str]:
    if value is not None and not TIME_PATTERN.match(value):
        raise ValueError("Formato de hora inválido, use HH:MM")
    return value


def minutes(value: str) -> int:
    hours, mins = value.split(":")
    return int(hours) * 60 + int(mins)


def one_of(allowed: Iterable[str]) -> Callable[[Optional[str]], Optional[str]]:
    allowed = tuple(allowed)

    def check(value):
        if value is not None and value not in allowed:
            raise ValueError(f"Valor inválido, opciones: {', '.join(allowed)}")
        return value

    return check
