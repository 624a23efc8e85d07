"""Input validation for CLI arguments."""
import re
import sys


def validate_project_id(project_id: str) -> None:
    """
    Validate project ID matches GCP requirements.

    GCP project IDs are 6-30 characters: lowercase letters, digits and
    hyphens, starting with a letter and not ending with a hyphen.

    Args:
        project_id: Project ID to validate

    Raises:
        SystemExit with code 2 if validation fails
    """
    pattern = r'^[a-z][a-z0-9-]{4,28}[a-z0-9]$'

    if not re.match(pattern, project_id):
        print(f"Error: Invalid project ID '{project_id}'", file=sys.stderr)
        print("\nProject IDs are 6-30 characters long and may contain:", file=sys.stderr)
        print("  lowercase letters, numbers and hyphens (-)", file=sys.stderr)
        print("They must start with a letter and cannot end with a hyphen.", file=sys.stderr)
        print("\nExamples of valid project IDs:", file=sys.stderr)
        print("  ✓ my-project", file=sys.stderr)
        print("  ✓ prod-secrets-123", file=sys.stderr)
        print("\nExamples of invalid project IDs:", file=sys.stderr)
        print("  ✗ My_Project (uppercase, underscore)", file=sys.stderr)
        print("  ✗ 123project (starts with a digit)", file=sys.stderr)
        sys.exit(2)


def validate_keep_count(keep: int) -> None:
    """
    Validate the disabled-version keep count.

    Args:
        keep: Number of disabled versions to retain

    Raises:
        SystemExit with code 2 if validation fails
    """
    if keep < 0:
        print(f"Error: --keep must be zero or greater, got {keep}", file=sys.stderr)
        print("\nUse --keep 0 to destroy every disabled version.", file=sys.stderr)
        sys.exit(2)
