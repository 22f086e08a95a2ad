"""
Static agenda data for GopherCon 2025.

The identifier set is fixed for a run; it is not discovered from the site.
"""

from __future__ import annotations

from typing import Tuple

SESSION_URL_TEMPLATE = "https://www.gophercon.com/agenda/session/{session_id}"

# Published session ids. "1557391" appears twice on the agenda page; the
# loader collapses repeats before dispatch.
DEFAULT_SESSION_IDS: Tuple[str, ...] = (
    "1545653", "1557197", "1590663", "1545640", "1590103", "1594224", "1545643", "1545641", "1557237", "1557206",
    "1545646", "1557199", "1557216", "1545650", "1545651", "1565804", "1557235", "1545655", "1545656", "1545657",
    "1545658", "1545682", "1572365", "1545661", "1545662", "1545663", "1545664", "1557386", "1557394", "1545667",
    "1557388", "1557392", "1557390", "1557391", "1545671", "1557387", "1557389", "1557348", "1647415", "1557393",
    "1557391", "1545679", "1545681", "1557342", "1572366", "1557343", "1545685", "1545686", "1545687", "1557395",
    "1557396", "1557397", "1557345", "1557398", "1557399", "1557400", "1557347", "1557344", "1557402", "1557403",
    "1545674", "1557401", "1557404", "1557405", "1557195",
)


def session_url(session_id: str, template: str = SESSION_URL_TEMPLATE) -> str:
    """Build the detail-page URL for one session id."""
    return template.format(session_id=session_id)


__all__ = ["DEFAULT_SESSION_IDS", "SESSION_URL_TEMPLATE", "session_url"]
