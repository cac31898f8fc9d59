# src/event_loop_lab/cli/render.py

"""Plain-text rendering of snapshots for the console front-end."""

from __future__ import annotations

from ..core.ports import Snapshot


def _queue_line(title: str, items: list[dict]) -> str:
    if not items:
        return f"  {title}: (empty)"
    return f"  {title}: " + " <- ".join(str(t.get("content", "")) for t in items)


def format_snapshot(snap: Snapshot) -> str:
    lines = ["State:"]

    stack = snap.get("call_stack") or []
    if stack:
        lines.append("  Call stack (top first):")
        for frame in reversed(stack):
            lines.append(f"    {frame['name']:<18} next: {frame['current']}")
    else:
        lines.append("  Call stack: (empty)")

    apis = snap.get("web_apis") or []
    if apis:
        timers = ", ".join(
            f"{p['content']}({p['remaining_ms']}ms)" if p["remaining_ms"] > 0 else f"{p['content']}(done)"
            for p in apis
        )
        lines.append(f"  Web APIs: {timers}")
    else:
        lines.append("  Web APIs: (none)")

    lines.append(_queue_line("Microtasks", snap.get("microtask_queue") or []))
    lines.append(_queue_line("Macrotasks", snap.get("macrotask_queue") or []))

    output = snap.get("output") or []
    lines.append("  Output: " + (", ".join(output) if output else "(nothing yet)"))

    active = snap.get("active_line")
    status = "finished" if snap.get("finished") else "running"
    lines.append(f"  Line: {active if active else '-'}  Status: {status}")
    return "\n".join(lines)


def format_code(source: str, active_line: int | None) -> str:
    out = []
    for i, line in enumerate(source.split("\n"), start=1):
        marker = ">" if active_line == i else " "
        out.append(f"{marker}{i:>3} | {line}")
    return "\n".join(out)


def format_step(event: str, snap: Snapshot) -> str:
    """One compact line for auto-run progress."""
    stack = snap.get("call_stack") or []
    top = stack[-1]["name"] if stack else "-"
    output = snap.get("output") or []
    last = output[-1] if output else ""
    line = snap.get("active_line")
    text = f"[{event}] line={line if line else '-'} stack={top} out={len(output)}"
    if last:
        text += f" last={last!r}"
    if snap.get("finished"):
        text += " (finished)"
    return text
