"""Entry point: serve | auth | oneshot."""

import asyncio
import sys

USAGE = (
    "Usage: python -m tgsearch.main [serve|auth|oneshot]\n"
    "  oneshot <query words> [--limit=N] [--sort=relevance|date_desc|date_asc]\n"
    "          [--range=last24h|last7days|last30days|last90days] [--groups=id1,id2]"
)

_ONESHOT_FLAGS = {
    "--limit": ("limit", int),
    "--sort": ("sortBy", str),
    "--range": ("dateRange", str),
    "--groups": ("sourceIds", lambda v: [g.strip() for g in v.split(",") if g.strip()]),
}


def parse_oneshot_args(args: list[str]) -> tuple[str, dict]:
    """Split oneshot argv into the query text and search options."""
    words: list[str] = []
    options: dict = {}
    for arg in args:
        flag, sep, value = arg.partition("=")
        if sep and flag in _ONESHOT_FLAGS:
            key, convert = _ONESHOT_FLAGS[flag]
            options[key] = convert(value)
        else:
            words.append(arg)
    return " ".join(words).strip(), options


def main():
    mode = "serve"
    if len(sys.argv) > 1:
        mode = sys.argv[1].lower()

    if mode == "serve":
        from tgsearch.interfaces.mcp_server import run_server

        sys.exit(asyncio.run(run_server()))

    elif mode == "auth":
        from tgsearch.services.telegram_auth import run_telegram_auth

        sys.exit(run_telegram_auth())

    elif mode == "oneshot":
        from tgsearch.interfaces.oneshot import main as run_oneshot_main

        try:
            query, options = parse_oneshot_args(sys.argv[2:])
        except ValueError as e:
            print(f"Invalid option: {e}")
            print(USAGE)
            sys.exit(2)
        if not query:
            query = sys.stdin.read().strip()
        sys.exit(run_oneshot_main(query=query, options=options))

    else:
        print(f"Unknown mode: {mode}")
        print(USAGE)
        sys.exit(1)


if __name__ == "__main__":
    main()
