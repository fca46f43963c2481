"""CLI entry-point for the alert tooling.

Usage examples
--------------
# List the alerts of a tfvars file:
python -m src.alerts.cli list --file stacks/dpd/auto.tfvars

# Validate every alert (with duplicate detection):
python -m src.alerts.cli validate --file auto.tfvars --duplicates

# Is carrier "DPD" covered by a duration alert?  Carrier id 764 by error rate?
python -m src.alerts.cli coverage --file auto.tfvars --carrier DPD --kind duration
python -m src.alerts.cli coverage --file auto.tfvars --carrier-id 764 --kind error_rate

# Suggested thresholds from duration samples:
python -m src.alerts.cli suggest --samples durations.csv

# Git branch of the alerts repository:
python -m src.alerts.cli branch --repo ~/src/infra
python -m src.alerts.cli create-branch alerts/dpd-threshold --repo ~/src/infra
"""

from __future__ import annotations

import argparse
import logging
import sys

import pandas as pd

from src.alerts.matching import has_alert_of_kind
from src.alerts.service import AlertService
from src.alerts.statistics import duration_statistics, load_duration_statistics
from src.alerts.threshold import ThresholdConfig, suggest_threshold
from src.alerts.validation import validate_alert
from src.contracts.alert import AlertRecord
from src.contracts.enums import AlertKind, MatchBy
from src.contracts.errors import AlertToolError, ConfigurationError
from src.shared.config_loader import get_value, load_config
from src.shared.logger import setup_logging
from src.shared.settings import DEFAULT_SETTINGS_PATH, YamlSettingsStore
from src.tfvars.codec import DEFAULT_SECTION_KEY, parse_alerts
from src.vcs.resolver import RepositoryStateResolver
from src.vcs.runner import SubprocessGitRunner

log = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="alert-tool",
        description="NRQL alert tooling — inspect tfvars alert lists and the alerts repository",
    )
    p.add_argument(
        "--config",
        default=None,
        help="Tool config YAML. Default: bundled config/alerting.yaml",
    )
    p.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level. Default: INFO",
    )
    p.add_argument(
        "--settings",
        default=str(DEFAULT_SETTINGS_PATH),
        help="User settings YAML (NRAlertsDir, SelectedStack). Default: %(default)s",
    )
    sub = p.add_subparsers(dest="command", required=True)

    def with_file(sp: argparse.ArgumentParser) -> None:
        origin = sp.add_mutually_exclusive_group()
        origin.add_argument("--file", help="tfvars file holding the alert list")
        origin.add_argument(
            "--stack",
            help="Stack name under the configured repository. Default: the selected stack",
        )

    sub.add_parser("stacks", help="List alert stacks of the configured repository")

    sp = sub.add_parser("list", help="List alerts of a tfvars file")
    with_file(sp)

    sp = sub.add_parser("validate", help="Validate every alert of a tfvars file")
    with_file(sp)
    sp.add_argument(
        "--duplicates",
        action="store_true",
        default=False,
        help="Also report names/queries used by another alert of the file.",
    )

    sp = sub.add_parser("coverage", help="Check whether a carrier has an alert of a kind")
    with_file(sp)
    target = sp.add_mutually_exclusive_group(required=True)
    target.add_argument("--carrier", help="Carrier name (matched in CarrierName = '...')")
    target.add_argument("--carrier-id", help="Numeric carrier id (DM Allocation alerts)")
    sp.add_argument(
        "--kind",
        default=AlertKind.DURATION.value,
        choices=[k.value for k in AlertKind],
        help="Alert kind. Default: duration",
    )
    sp.add_argument(
        "--variant",
        choices=["any", "asos", "non-asos"],
        default="any",
        help="Restrict to ASOS / non-ASOS alert titles. Default: any",
    )

    sp = sub.add_parser("suggest", help="Suggest a critical threshold")
    source = sp.add_mutually_exclusive_group(required=True)
    source.add_argument("--samples", help="CSV with carrier,duration columns")
    source.add_argument(
        "--durations",
        type=float,
        nargs="+",
        help="Raw duration samples (seconds) for a single carrier",
    )

    sp = sub.add_parser("branch", help="Show the current branch of a repository")
    sp.add_argument("--repo", default=None, help="Path inside the repository. Default: cwd")

    sp = sub.add_parser("branches", help="List local branches")
    sp.add_argument("--repo", default=None, help="Path inside the repository. Default: cwd")

    sp = sub.add_parser("checkout", help="Check out an existing branch")
    sp.add_argument("name")
    sp.add_argument("--repo", default=None, help="Path inside the repository. Default: cwd")

    sp = sub.add_parser("create-branch", help="Create a branch and check it out")
    sp.add_argument("name")
    sp.add_argument("--base", default=None, help="Base branch. Default: main, else master")
    sp.add_argument("--repo", default=None, help="Path inside the repository. Default: cwd")
    return p


def _service(args: argparse.Namespace, cfg: dict) -> AlertService:
    return AlertService(YamlSettingsStore(args.settings), cfg)


def _load_file_alerts(args: argparse.Namespace, cfg: dict) -> list[AlertRecord]:
    if args.file:
        section_key = get_value(cfg, "alerts.section_key", DEFAULT_SECTION_KEY)
        with open(args.file, encoding="utf-8", newline="") as fh:
            return parse_alerts(fh.read(), section_key)

    service = _service(args, cfg)
    stack = args.stack or service.selected_stack
    if not stack:
        raise ConfigurationError("no --file or --stack given and no stack is selected")
    return service.load_alerts(stack)


def _cmd_stacks(args: argparse.Namespace, cfg: dict) -> int:
    service = _service(args, cfg)
    if not service.repository_path:
        raise ConfigurationError(f"'NRAlertsDir' is not set in {args.settings}")
    ok, missing = service.validate_repository(service.repository_path)
    if not ok:
        log.warning("Repository %s lacks folders: %s", service.repository_path, ", ".join(missing))
    selected = service.selected_stack
    for stack in service.list_stacks():
        print(f"{'*' if stack == selected else ' '} {stack}")
    return 0


def _cmd_list(args: argparse.Namespace, cfg: dict) -> int:
    alerts = _load_file_alerts(args, cfg)
    for n, alert in enumerate(alerts, 1):
        state = "enabled" if alert.enabled else "disabled"
        print(f"{n:3d}. {alert.name}  [{alert.severity or '-'}, {state}, threshold={alert.critical_threshold}]")
    log.info("%d alerts listed", len(alerts))
    return 0


def _cmd_validate(args: argparse.Namespace, cfg: dict) -> int:
    alerts = _load_file_alerts(args, cfg)
    failed = 0
    for n, alert in enumerate(alerts):
        others = alerts[:n] + alerts[n + 1 :]
        errors = validate_alert(alert, others, check_duplicates=args.duplicates)
        if errors:
            failed += 1
            print(f"{alert.name or '<unnamed>'}:")
            for err in errors:
                print(f"  - {err.message}")
    log.info("%d of %d alerts failed validation", failed, len(alerts))
    return 1 if failed else 0


def _cmd_coverage(args: argparse.Namespace, cfg: dict) -> int:
    alerts = _load_file_alerts(args, cfg)
    variant = {"any": None, "asos": True, "non-asos": False}[args.variant]
    if args.carrier is not None:
        key, by = args.carrier, MatchBy.NAME
    else:
        key, by = args.carrier_id, MatchBy.ID
    found = has_alert_of_kind(alerts, key, AlertKind(args.kind), variant, by)
    print(f"{by.value} '{key}' {args.kind}: {'covered' if found else 'missing'}")
    return 0 if found else 1


def _cmd_suggest(args: argparse.Namespace, cfg: dict) -> int:
    config = ThresholdConfig.from_config(cfg)
    if args.durations:
        stats = {"samples": duration_statistics(args.durations)}
    else:
        stats = load_duration_statistics(args.samples)
    for carrier, s in stats.items():
        value = suggest_threshold(s, config)
        print(
            f"{carrier}: avg={s.average_duration:.2f}s stddev={s.standard_deviation:.2f}s"
            f" n={s.sample_count} -> critical_threshold={value:g}"
        )
    return 0


def _resolver(cfg: dict) -> RepositoryStateResolver:
    runner = SubprocessGitRunner(
        executable=get_value(cfg, "git.executable", "git"),
        timeout=get_value(cfg, "git.timeout_sec"),
    )
    return RepositoryStateResolver(runner)


def _cmd_branch(args: argparse.Namespace, cfg: dict) -> int:
    branch = _resolver(cfg).current_branch(args.repo)
    print(branch or "No git branch")
    return 0 if branch else 1


def _cmd_branches(args: argparse.Namespace, cfg: dict) -> int:
    resolver = _resolver(cfg)
    current = resolver.current_branch(args.repo)
    for name in resolver.list_branches(args.repo):
        print(f"{'*' if name == current else ' '} {name}")
    return 0


def _cmd_checkout(args: argparse.Namespace, cfg: dict) -> int:
    return 0 if _resolver(cfg).checkout(args.name, args.repo) else 1


def _cmd_create_branch(args: argparse.Namespace, cfg: dict) -> int:
    return 0 if _resolver(cfg).create_and_checkout(args.name, args.base, args.repo) else 1


_COMMANDS = {
    "stacks": _cmd_stacks,
    "list": _cmd_list,
    "validate": _cmd_validate,
    "coverage": _cmd_coverage,
    "suggest": _cmd_suggest,
    "branch": _cmd_branch,
    "branches": _cmd_branches,
    "checkout": _cmd_checkout,
    "create-branch": _cmd_create_branch,
}


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)

    try:
        cfg = load_config(args.config)
        return _COMMANDS[args.command](args, cfg)
    except (AlertToolError, OSError, KeyError, pd.errors.EmptyDataError, pd.errors.ParserError) as exc:
        log.error("%s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
