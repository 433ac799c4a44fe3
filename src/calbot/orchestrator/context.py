from __future__ import annotations

import json
import logging
from datetime import datetime, tzinfo
from pathlib import Path
from typing import Iterable, List, Optional

from ..domain import Contact
from .prompts import SYSTEM_PROMPT

logger = logging.getLogger(__name__)


def load_contacts(path: Path) -> List[Contact]:
    """Read known coworkers from ``coworker_config.json``; a missing file means none."""

    if not path.exists():
        return []
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logger.warning("Could not load contacts from %s: %s", path, exc)
        return []

    records = payload.get("coworkers") if isinstance(payload, dict) else None
    contacts: list[Contact] = []
    for record in records or []:
        if not isinstance(record, dict) or not record.get("email"):
            continue
        contacts.append(Contact.from_record(record))
    return contacts


def build_context_block(now: datetime, contacts: Iterable[Contact], tz: Optional[tzinfo] = None) -> str:
    local_now = now.astimezone(tz) if tz else now
    lines = [
        "CURRENT CONTEXT:",
        f"Today is: {local_now.strftime('%A, %B %d, %Y')}",
        f"Current time: {local_now.strftime('%A, %B %d, %Y %I:%M %p %Z')}",
        f"Current datetime (ISO): {local_now.isoformat(timespec='seconds')}",
    ]
    contacts = list(contacts)
    if contacts:
        lines.extend(["", "Coworker contacts:"])
        for contact in contacts:
            entry = f"- {contact.name}"
            if contact.role:
                entry += f" ({contact.role})"
            entry += f": {contact.email}"
            if contact.meeting_count:
                entry += f" ({contact.meeting_count} meetings)"
            lines.append(entry)
    else:
        lines.extend(["", "No coworker information found. Known contacts can be listed in coworker_config.json."])
    return "\n".join(lines)


def build_system_prompt(now: datetime, contacts: Iterable[Contact], tz: Optional[tzinfo] = None) -> str:
    return f"{SYSTEM_PROMPT}\n\n{build_context_block(now, contacts, tz)}"
