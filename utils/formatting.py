from typing import Optional


def format_percent(value: Optional[float]) -> str:
    return f"{round((value or 0) * 100)}%"


def format_number(value: Optional[float]) -> str:
    return f"{value:.1f}" if value else "0.0"
