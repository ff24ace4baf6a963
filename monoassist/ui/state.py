"""Mesop UI state definition.

Single ``@me.stateclass``.  Workflow data lives in the nested
:class:`~monoassist.models.ProcessingState`; everything else here is
presentation-only (log lines, the exported file, admin panel inputs).
"""

from __future__ import annotations

from dataclasses import field

import mesop as me

from monoassist.models import ProcessingState


@me.stateclass
class State:
    # ── Workflow ────────────────────────────────────────────────────────
    session: ProcessingState = field(default_factory=ProcessingState)
    logs: list[str] = field(default_factory=list)
    upload_notice: str = ""

    # ── Export output ───────────────────────────────────────────────────
    pdf_filename: str = ""
    pdf_content_base64: str = ""

    # ── Admin panel ─────────────────────────────────────────────────────
    admin_authenticated: bool = False
    admin_password_input: str = ""
    admin_notice: str = ""
    admin_tab: str = "STATS"
    prompt_system_role: str = ""
    prompt_standard_instruction: str = ""
    prompt_detailed_instruction: str = ""
