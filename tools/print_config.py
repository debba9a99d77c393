"""Print the effective handoff configuration with secrets redacted."""

import json
import pathlib
import sys

sys.path.append(str(pathlib.Path(__file__).resolve().parents[1]))

from handoff.config import HandoffSettings  # noqa: E402


def get_config() -> dict:
    return HandoffSettings.from_env().redacted()


def main():
    sys.stdout.write(json.dumps(get_config(), indent=2) + "\n")


if __name__ == "__main__":
    main()
