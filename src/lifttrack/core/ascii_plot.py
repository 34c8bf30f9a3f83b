"""
ASCII charts for XP and exercise progress.

Creates terminal-friendly bar charts of training data.
"""

from .models import ExerciseProgress, MuscleXp, ProgressPoint


def create_simple_bar_chart(
    labels: list[str],
    values: list[float],
    width: int = 40,
    title: str = "",
    fmt: str = "{:,.0f}",
) -> str:
    """
    Create a simple horizontal bar chart.

    Args:
        labels: Labels for each bar
        values: Values for each bar
        width: Maximum bar width
        title: Chart title
        fmt: Format applied to the value printed after each bar

    Returns:
        ASCII bar chart string
    """
    if not values:
        return "No data to display."

    max_val = max(values)
    max_label_len = max(len(label) for label in labels) if labels else 0

    lines = []

    if title:
        lines.append(title)
        lines.append("─" * (max_label_len + width + 5))

    for label, value in zip(labels, values):
        bar_len = int((value / max_val) * width) if max_val > 0 else 0
        bar = "█" * bar_len
        lines.append(f"{label:>{max_label_len}} │{bar} {fmt.format(value)}")

    return "\n".join(lines)


def create_xp_progress_chart(points: list[ProgressPoint], width: int = 40) -> str:
    """
    XP gained per session, oldest at the top.

    Args:
        points: Chronological per-session XP totals

    Returns:
        ASCII chart string
    """
    if not points:
        return "No XP earned yet. End a session with logged sets to see progress."

    labels = [f"{p.date:%Y-%m-%d} #{p.session_id}" for p in points]
    values = [float(p.xp_gained) for p in points]
    return create_simple_bar_chart(labels, values, width=width, title="XP per Session")


def create_level_bars(levels: list[MuscleXp], width: int = 20) -> str:
    """
    One progress bar per muscle group showing the way to the next level.

    Returns:
        ASCII chart string
    """
    if not levels:
        return "No muscle-group XP yet."

    name_len = max(len(m.muscle_group) for m in levels)
    lines = []
    for m in levels:
        filled = m.percent_to_next * width // 100
        bar = "█" * filled + "░" * (width - filled)
        lines.append(
            f"{m.muscle_group:<{name_len}}  Lv {m.level:>2} {bar} "
            f"{m.xp_into_level:,}/{m.xp_to_next_level:,}"
        )
    return "\n".join(lines)


def create_exercise_chart(progress: ExerciseProgress, width: int = 40) -> str:
    """
    Volume of every working set of one exercise over time.

    Returns:
        ASCII chart string
    """
    if not progress.points:
        return f"No sets logged for {progress.exercise.name} yet."

    labels = [f"{p.date:%Y-%m-%d} {p.weight:g}x{p.reps}" for p in progress.points]
    values = [float(p.volume) for p in progress.points]
    return create_simple_bar_chart(
        labels, values, width=width, title=f"{progress.exercise.name}: volume per set"
    )
