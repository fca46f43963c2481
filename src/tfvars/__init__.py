"""tfvars codec — read and rewrite the ``nrql_alerts`` list of a tfvars file.

Modules
───────
  lexer   — token scanner (strings, numbers, brackets, comments)
  codec   — locate the alert list, parse blocks, lossless rewrite
  render  — canonical rendering of one alert block
"""

from src.tfvars.codec import (
    DEFAULT_SECTION_KEY,
    append_section,
    locate_section,
    parse_alerts,
    replace_alerts,
)
from src.tfvars.render import render_alert

__all__ = [
    "DEFAULT_SECTION_KEY",
    "append_section",
    "locate_section",
    "parse_alerts",
    "render_alert",
    "replace_alerts",
]
