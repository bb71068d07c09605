from __future__ import annotations

import json
import math
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

import yaml

from ..core.context import RunContext
from ..core.logging import log_event
from ..core.schema import validate_payload
from ..core.serialize import document_text
from ..errors import ConfigInvalid, ConfigMissing
from ..models import Budget
from .defaults import DEFAULT_ARTIFACT_GROUPS, DEFAULT_BUDGETS, DEFAULT_REGRESSION_TOLERANCE_PCT

_YAML_SUFFIXES = {".yaml", ".yml"}


@dataclass(frozen=True)
class BudgetConfig:
    budgets: Mapping[str, Budget]
    artifact_groups: Mapping[str, tuple[str, ...]]
    regression_tolerance_pct: float
    source: Path | None = None
    created: bool = False

    def get(self, metric: str) -> Budget | None:
        return self.budgets.get(metric)

    def tolerance_for(self, metric: str) -> float:
        budget = self.budgets.get(metric)
        if budget is not None and budget.regression_tolerance_pct is not None:
            return budget.regression_tolerance_pct
        return self.regression_tolerance_pct

    def tolerance_overrides(self) -> dict[str, float]:
        return {
            name: b.regression_tolerance_pct
            for name, b in self.budgets.items()
            if b.regression_tolerance_pct is not None
        }

    def to_json(self) -> dict[str, Any]:
        return {
            "schema_version": 1,
            "regression_tolerance_pct": self.regression_tolerance_pct,
            "artifact_groups": {name: list(patterns) for name, patterns in self.artifact_groups.items()},
            "budgets": {name: self.budgets[name].to_json() for name in self.budgets},
        }

    @classmethod
    def defaults(cls) -> "BudgetConfig":
        return cls(
            budgets=MappingProxyType({b.metric: b for b in DEFAULT_BUDGETS}),
            artifact_groups=MappingProxyType(dict(DEFAULT_ARTIFACT_GROUPS)),
            regression_tolerance_pct=DEFAULT_REGRESSION_TOLERANCE_PCT,
        )


class _UniqueKeyLoader(yaml.SafeLoader):
    pass


def _construct_unique_mapping(loader: _UniqueKeyLoader, node: yaml.MappingNode, deep: bool = False) -> dict[Any, Any]:
    seen: set[Any] = set()
    for key_node, _ in node.value:
        key = loader.construct_object(key_node, deep=deep)
        if key in seen:
            raise ConfigInvalid(f"duplicate key `{key}` at line {key_node.start_mark.line + 1}")
        seen.add(key)
    return loader.construct_mapping(node, deep=deep)


_UniqueKeyLoader.add_constructor(yaml.resolver.BaseResolver.DEFAULT_MAPPING_TAG, _construct_unique_mapping)


def _unique_json_pairs(pairs: list[tuple[str, Any]]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for key, value in pairs:
        if key in out:
            raise ConfigInvalid(f"duplicate key `{key}`")
        out[key] = value
    return out


def _parse(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    try:
        if path.suffix in _YAML_SUFFIXES:
            return yaml.load(text, Loader=_UniqueKeyLoader)  # noqa: S506 - SafeLoader subclass
        return json.loads(text, object_pairs_hook=_unique_json_pairs)
    except ConfigInvalid as exc:
        raise ConfigInvalid(f"{path}: {exc.message}") from exc
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ConfigInvalid(f"{path}: unparseable budget config: {exc}") from exc


def _dump(path: Path, payload: dict[str, Any]) -> str:
    if path.suffix in _YAML_SUFFIXES:
        return yaml.safe_dump(payload, sort_keys=False, default_flow_style=False)
    return document_text(payload, sort_keys=False)


def parse_budget_config(payload: Any, label: str) -> BudgetConfig:
    validate_payload(payload, "budgets.schema.json", label)
    errors: list[str] = []
    budgets: dict[str, Budget] = {}
    for metric, raw in payload["budgets"].items():
        budget = Budget.from_json(metric, raw)
        if not (math.isfinite(budget.budget) and math.isfinite(budget.warning)):
            errors.append(f"{metric}: budget and warning must be finite (budget={budget.budget}, warning={budget.warning})")
        elif budget.regression_tolerance_pct is not None and not math.isfinite(budget.regression_tolerance_pct):
            errors.append(f"{metric}: regression_tolerance_pct must be a finite number")
        elif budget.budget < 0 or budget.warning < 0:
            errors.append(f"{metric}: negative values are not allowed (budget={budget.budget}, warning={budget.warning})")
        elif budget.warning >= budget.budget:
            errors.append(f"{metric}: warning {budget.warning} must be strictly below budget {budget.budget}")
        budgets[metric] = budget
    tolerance = float(payload.get("regression_tolerance_pct", DEFAULT_REGRESSION_TOLERANCE_PCT))
    if not math.isfinite(tolerance):
        errors.append(f"regression_tolerance_pct must be a finite number, got {tolerance}")
    if errors:
        raise ConfigInvalid(f"{label}: invalid budgets: " + "; ".join(errors))
    groups_raw = payload.get("artifact_groups")
    groups = (
        {str(name): tuple(str(p) for p in patterns) for name, patterns in groups_raw.items()}
        if groups_raw is not None
        else dict(DEFAULT_ARTIFACT_GROUPS)
    )
    return BudgetConfig(
        budgets=MappingProxyType(budgets),
        artifact_groups=MappingProxyType(groups),
        regression_tolerance_pct=tolerance,
    )


def write_budgets(path: Path, config: BudgetConfig) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(_dump(path, config.to_json()), encoding="utf-8")
    return path


def read_budgets(path: Path) -> BudgetConfig:
    if not path.is_file():
        raise ConfigMissing(f"budget config not found: {path}")
    config = parse_budget_config(_parse(path), str(path))
    return BudgetConfig(
        budgets=config.budgets,
        artifact_groups=config.artifact_groups,
        regression_tolerance_pct=config.regression_tolerance_pct,
        source=path,
    )


def load_budgets(path: Path, ctx: RunContext) -> BudgetConfig:
    """Load budgets from `path`, seeding the file with defaults when it is absent."""
    try:
        config = read_budgets(path)
    except ConfigMissing as exc:
        log_event(ctx, "warning", "budgets", "defaults", reason=exc.message, path=str(path))
        defaults = BudgetConfig.defaults()
        write_budgets(path, defaults)
        return BudgetConfig(
            budgets=defaults.budgets,
            artifact_groups=defaults.artifact_groups,
            regression_tolerance_pct=defaults.regression_tolerance_pct,
            source=path,
            created=True,
        )
    log_event(ctx, "info", "budgets", "loaded", path=str(path), count=len(config.budgets))
    return config
