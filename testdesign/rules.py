"""Coverage rules: one YAML file per coverage level.

A rule tells the model how deep to go (smoke / regression / full): what to
include, what to avoid, which tags to use, and how to assign priority. The
rendered text is injected verbatim into the user prompt and snapshotted on
the generation job.

Rule files live in ``testdesign/data/rules`` unless TESTDESIGN_RULES_DIR
points elsewhere.
"""

import os
from pathlib import Path
from typing import Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, PositiveInt

from testdesign.schemas.ir import CoverageLevel
from testdesign.utils.logging import log, get_logger

MODULE = "rules"
logger = get_logger()

DEFAULT_RULES_DIR = Path(__file__).resolve().parent / "data" / "rules"


class RuleConstraints(BaseModel):
    model_config = ConfigDict(extra="forbid")

    max_steps_per_case: PositiveInt


class PriorityRule(BaseModel):
    model_config = ConfigDict(extra="forbid")

    condition: str
    priority: str


class PriorityPolicy(BaseModel):
    model_config = ConfigDict(extra="forbid")

    default: str
    rules: list[PriorityRule]


class CoverageRule(BaseModel):
    model_config = ConfigDict(extra="forbid")

    level: CoverageLevel
    description: str
    constraints: RuleConstraints
    must_include: list[str]
    avoid: list[str]
    recommended_tags: list[str]
    priority_policy: PriorityPolicy


class RuleNotFoundError(FileNotFoundError):
    """No rule file exists for the requested coverage level."""


def rules_dir() -> Path:
    override = os.getenv("TESTDESIGN_RULES_DIR")
    return Path(override) if override else DEFAULT_RULES_DIR


def load_rule(level: str, directory: Optional[Union[str, Path]] = None) -> CoverageRule:
    """Load and validate ``coverage_<level>.yaml``.

    Raises:
        RuleNotFoundError: the file does not exist
        pydantic.ValidationError: the file does not match CoverageRule
    """
    path = Path(directory or rules_dir()) / f"coverage_{level}.yaml"
    if not path.is_file():
        raise RuleNotFoundError(f"Coverage rule file not found: {path}")

    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f)

    rule = CoverageRule.model_validate(data)
    log.debug(logger, MODULE, "loaded", "Coverage rule loaded",
              coverage_level=rule.level, path=str(path))
    return rule


def rule_to_text(rule: CoverageRule) -> str:
    lines = [
        f"Coverage level: {rule.level}",
        f"Description: {rule.description.strip()}",
        "Constraints:",
        f"  - Max steps per case: {rule.constraints.max_steps_per_case}",
        "Must include:",
    ]
    lines.extend(f"  - {item}" for item in rule.must_include)
    lines.append("Avoid:")
    lines.extend(f"  - {item}" for item in rule.avoid)
    lines.append(f"Recommended tags: {', '.join(rule.recommended_tags)}")
    lines.append("Priority policy:")
    lines.append(f"  Default: {rule.priority_policy.default}")
    lines.extend(
        f'  - If "{r.condition}" then {r.priority}' for r in rule.priority_policy.rules
    )
    return "\n".join(lines)
