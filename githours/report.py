"""
.. module:: report
   :platform: Unix, Windows
   :synopsis: Plain text rendering of an hours estimate

"""

from githours.timestamps import format_duration

__all__ = ["format_rfc3339", "format_total", "format_periods", "format_trace", "render"]


def format_rfc3339(ts):
    """Formats a timestamp as RFC 3339, writing a zero UTC offset as ``Z``."""
    text = ts.isoformat()
    if text.endswith("+00:00"):
        return text[:-6] + "Z"
    return text


def format_total(config, total):
    return f'From "{config.since}" to "{config.before}" : {format_duration(total)}'


def format_periods(periods):
    """Lists active periods, numbered from 1, with RFC 3339 start and end times."""
    lines = ["Active periods:"]
    for i, p in enumerate(periods, start=1):
        lines.append(f"  {i:2d}. {format_rfc3339(p.start)} -> {format_rfc3339(p.end)} : {format_duration(p.duration)}")
    return "\n".join(lines)


def format_trace(trace):
    """Two lines per commit: the measured gap with its contribution, then the commit itself."""
    lines = []
    for step in trace:
        elapsed = "N/A" if step.elapsed is None else format_duration(step.elapsed)
        marker = " (fallback)" if step.used_fallback else ""
        lines.append(f"{elapsed} (+{format_duration(step.contribution)}) >{marker}")
        lines.append("\t " + step.record.describe())
    return "\n".join(lines)


def render(config, estimate):
    """Renders the trace and periods when requested, then the total."""
    parts = []
    if config.debug_trace and estimate.trace:
        parts.append(format_trace(estimate.trace))
    if config.emit_periods:
        parts.append(format_periods(estimate.periods))
    parts.append(format_total(config, estimate.total))
    return "\n".join(parts)
