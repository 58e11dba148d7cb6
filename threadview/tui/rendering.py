"""Fixed-width row layout for the thread list.

Columns, left to right: flag (2), sender (20), thread size (8), subject and
preview (whatever is left), received date (7, right aligned).
"""

import re
from datetime import datetime
from typing import Iterable, List, Optional

from rich.style import Style
from rich.text import Text

from threadview.core.models import Email, EmailAddress, Row
from threadview.tui.view_state import ViewSnapshot

FLAG_WIDTH = 2
FROM_WIDTH = 20
THREAD_SIZE_WIDTH = 8
DATE_WIDTH = 7
MAX_THREAD_SIZE = 999
PREVIEW_PART_LIMIT = 256

FLAG_MARK = "★ "

TIME_FORMAT = "%H:%M"
DATE_FORMAT = "%b %d"

NORMAL = Style(color="white", bgcolor="black")
SELECTED = Style(color="black", bgcolor="cyan")
PREVIEW = Style(color="cyan", bgcolor="black")

_WHITESPACE = re.compile(r"\s+")


def fit(text: str, width: int) -> str:
    """Truncate or right-pad ``text`` to exactly ``width`` characters."""
    if width <= 0:
        return ""
    return text[:width].ljust(width)


def format_from(participants: Iterable[EmailAddress], width: int = FROM_WIDTH) -> str:
    """Sender column: full names for one sender, first names for several."""
    addresses = sorted(participants, key=lambda a: ((a.name or "").lower(), a.email or ""))
    multiple = len(addresses) > 1
    names = []
    for address in addresses:
        if address.name:
            names.append(address.name.split()[0] if multiple else address.name)
        elif address.email:
            names.append(address.email.split("@")[0])
    return fit(", ".join(names), width)


def format_thread_size(count: int) -> str:
    if count <= 1:
        return " " * THREAD_SIZE_WIDTH
    return f" ({min(count, MAX_THREAD_SIZE):>3})  "


def is_today(value: datetime, now: Optional[datetime] = None) -> bool:
    now = now or datetime.now(value.tzinfo)
    return value.date() == now.date()


def format_received(value: datetime, now: Optional[datetime] = None, width: int = DATE_WIDTH) -> str:
    """``HH:MM`` for today, ``Mon DD`` otherwise, right aligned."""
    local = value.astimezone() if value.tzinfo else value
    reference = now or datetime.now(local.tzinfo)
    fmt = TIME_FORMAT if is_today(local, reference) else DATE_FORMAT
    return local.strftime(fmt).rjust(width)[-width:]


def preview_text(email: Email) -> str:
    """Text body parts with collapsed whitespace; the server preview otherwise."""
    parts = []
    for part_id in email.text_body:
        value = email.body_value(part_id)
        if value is not None:
            parts.append(_WHITESPACE.sub(" ", value)[:PREVIEW_PART_LIMIT])
    text = "".join(parts) if parts else email.preview
    return _WHITESPACE.sub(" ", text).strip()


def row_style(email: Email) -> Optional[str]:
    """Drafts italic, unseen bold, seen plain."""
    if email.is_draft:
        return "italic"
    if email.is_seen:
        return None
    return "bold"


def render_row(row: Row, width: int, selected: bool = False, now: Optional[datetime] = None) -> Text:
    """One list line of exactly ``width`` cells (for widths of at least the fixed columns)."""
    email = row.most_recent
    base = SELECTED if selected else NORMAL
    emphasis = row_style(email)
    strong = base + Style.parse(emphasis) if emphasis else base
    preview_style = base if selected else PREVIEW
    if emphasis:
        preview_style = preview_style + Style.parse(emphasis)

    subject_width = max(0, width - FLAG_WIDTH - FROM_WIDTH - THREAD_SIZE_WIDTH - DATE_WIDTH)
    subject = email.subject or ""

    line = Text(no_wrap=True, overflow="crop")
    line.append(FLAG_MARK if email.is_flagged else "  ", base)
    line.append(format_from(row.participants), strong)
    line.append(format_thread_size(row.message_count), strong)
    if len(subject) >= subject_width:
        line.append(subject[:subject_width], strong)
    else:
        line.append(subject, strong)
        remaining = subject_width - len(subject)
        line.append(" ", preview_style)
        line.append(fit(preview_text(email), remaining - 1), preview_style)
    line.append(format_received(email.received_at, now), strong)
    return line


def blank_line(width: int) -> Text:
    return Text(" " * max(width, 0), NORMAL)


def status_lines(message: str, width: int, height: int) -> List[Text]:
    """Blank screen with ``message`` on the bottom line."""
    lines = [blank_line(width) for _ in range(max(height - 1, 0))]
    lines.append(Text(fit(message, width), NORMAL))
    return lines[-height:] if height > 0 else []


def render_lines(snapshot: ViewSnapshot, width: int, now: Optional[datetime] = None) -> List[Text]:
    """All screen lines for a snapshot; rows past the end of the list are blank."""
    height = snapshot.visible_rows
    if snapshot.status is not None:
        return status_lines(snapshot.status, width, height)

    lines = []
    for index in range(snapshot.offset, snapshot.offset + height):
        if index < len(snapshot.rows):
            row = snapshot.rows[index]
            lines.append(render_row(row, width, index == snapshot.cursor, now))
        else:
            lines.append(blank_line(width))
    return lines
