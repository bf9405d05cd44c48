from pathlib import Path

import yaml
from pydantic import ValidationError

from project_access.rules.models import AccessRules

DEFAULT_RULES_PATH = Path(__file__).with_name("default_rules.yaml")


def _extract_yaml(content: str) -> str:
    # Accept rules embedded in a markdown ```yaml fence
    lines = content.splitlines()
    yaml_lines = []
    in_block = False
    found_block = False

    for line in lines:
        s_line = line.strip()
        if s_line.startswith("```yaml"):
            in_block = True
            found_block = True
            continue
        if in_block and s_line.startswith("```"):
            break
        if in_block:
            yaml_lines.append(line)

    if found_block:
        return "\n".join(yaml_lines)
    return content


def parse_rules(content: str) -> AccessRules:
    """
    Parse and validate rules from YAML text.
    Raises ValueError on invalid YAML or schema.
    """
    try:
        data = yaml.safe_load(_extract_yaml(content))
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML syntax in rules file: {e}") from e

    try:
        return AccessRules.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Rules validation failed:\n{e}") from e


def load_rules(path: str | Path | None = None) -> AccessRules:
    """
    Load and validate the rules file. Defaults to the packaged rules.
    Raises FileNotFoundError if file missing.
    """
    path = Path(path) if path else DEFAULT_RULES_PATH
    if not path.exists():
        raise FileNotFoundError(f"Rules file not found at: {path}")

    with open(path) as f:
        return parse_rules(f.read())
