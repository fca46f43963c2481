"""Alert tooling — carrier coverage, validation, thresholds, stacks.

Modules
───────
  matching    — exact-boundary carrier name / id matching, title helpers
  validation  — field checks, accumulated ValidationErrors
  threshold   — suggested critical threshold from duration statistics
  statistics  — DurationStatistics from raw samples (pandas)
  service     — stacks on disk: load, save, repository layout
  cli         — argparse entry-point
"""
