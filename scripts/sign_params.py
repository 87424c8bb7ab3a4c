"""Print the canonical string and Flow signature for a set of parameters.

Handy when Flow rejects a request with an invalid-signature error: run it with
the same parameters and compare against what the relay logged.
"""

import argparse
import json
from pathlib import Path

from flowrelay.common.signing import canonical_string, sign


def parse_pairs(pairs: list[str]) -> dict[str, str]:
    """Turn `key=value` arguments into a parameter dict."""

    params = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep:
            raise SystemExit(f"Expected key=value, got {pair!r}")
        params[key] = value
    return params


def main() -> None:
    """Parse CLI args and print the string to sign plus its signature."""

    parser = argparse.ArgumentParser(description="Compute a Flow request signature.")
    parser.add_argument("--secret", required=True, help="Flow secret key")
    parser.add_argument("--file", dest="json_file", default=None, help="JSON object of parameters")
    parser.add_argument("pairs", nargs="*", help="Parameters as key=value")
    args = parser.parse_args()

    if bool(args.pairs) == bool(args.json_file):
        raise SystemExit("Provide either key=value pairs or --file")

    if args.json_file:
        params = json.loads(Path(args.json_file).read_text())
    else:
        params = parse_pairs(args.pairs)

    print(f"string_to_sign={canonical_string(params)}")
    print(f"s={sign(params, args.secret)}")


if __name__ == "__main__":
    main()
