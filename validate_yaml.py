#!/usr/bin/env python3
"""Validate fleet data YAML files against the schema."""
import json
import sys
from pathlib import Path

import yaml
from jsonschema import validate, ValidationError


def load_schema() -> dict:
    """Load the JSON schema from schema.yaml."""
    schema_path = Path(__file__).parent / "schema.yaml"
    with open(schema_path) as f:
        return yaml.safe_load(f)


def validate_fleet_file(filepath: Path, schema: dict) -> list[str]:
    """Validate a single fleet data file. Returns list of errors."""
    errors = []
    try:
        with open(filepath) as f:
            data = yaml.safe_load(f)
        # Unquoted YAML dates load as date objects; the schema expects strings
        data = json.loads(json.dumps(data, default=str))
        validate(instance=data, schema=schema)
    except yaml.YAMLError as e:
        errors.append(f"YAML parse error: {e}")
    except ValidationError as e:
        errors.append(f"Schema validation error: {e.message}")
        if e.path:
            errors.append(f"  at path: {'.'.join(str(p) for p in e.path)}")
    except Exception as e:
        errors.append(f"Error: {e}")
    return errors


def main(argv=None):
    """Validate the given fleet files (default: *.yaml in the current directory)."""
    args = sys.argv[1:] if argv is None else argv
    schema = load_schema()

    if args:
        yaml_files = [Path(a) for a in args]
    else:
        cwd = Path.cwd()
        yaml_files = [
            p
            for p in list(cwd.glob("*.yaml")) + list(cwd.glob("*.yml"))
            if p.name != "schema.yaml"
        ]

    if not yaml_files:
        print("Warning: No YAML files to validate")
        return 0

    all_valid = True
    for filepath in sorted(yaml_files):
        errors = validate_fleet_file(filepath, schema)
        if errors:
            print(f"FAIL: {filepath.name}")
            for error in errors:
                print(f"  {error}")
            all_valid = False
        else:
            print(f"OK: {filepath.name}")

    return 0 if all_valid else 1


if __name__ == "__main__":
    sys.exit(main())
