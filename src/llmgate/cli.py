from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys
from pathlib import Path

from .config import load_gateway_config
from .errors import StreamError
from .gateway import Gateway
from .resolver import resolve_providers
from .streaming.events import Done, ErrorEvent, TextDelta
from .telemetry import init_telemetry, shutdown_telemetry


async def _providers(args) -> int:
    config = load_gateway_config(Path(args.config_dir))
    discover = False if args.no_discovery else config.discovery.enabled
    providers = await resolve_providers(
        config.providers,
        os.environ,
        discover=discover,
        discovery_timeout=config.discovery.timeout_sec,
    )
    if args.json:
        print(json.dumps({pid: cfg.to_dict(redact=True) for pid, cfg in providers.items()}, indent=2))
        return 0
    for pid, cfg in providers.items():
        status = "needs login" if cfg.needs_login else f"{len(cfg.models)} models"
        print(f"[llmgate] {pid:<24} {cfg.api:<22} {status}")
    return 0


async def _chat(args) -> int:
    config = load_gateway_config(Path(args.config_dir))
    init_telemetry(config.telemetry)
    try:
        gateway = await Gateway.create(config, os.environ)
        async with gateway:
            try:
                events = gateway.stream_completion(args.provider, args.model, args.session, prompt=args.prompt)
            except ValueError as e:
                print(f"[llmgate] {e}", file=sys.stderr)
                return 2
            async for event in events:
                if isinstance(event, TextDelta):
                    print(event.delta, end="", flush=True)
                elif isinstance(event, Done):
                    print()
                    usage = event.message.usage
                    print(f"[llmgate] ~{usage.input} in / ~{usage.output} out tokens", file=sys.stderr)
                elif isinstance(event, ErrorEvent):
                    print()
                    print(f"[llmgate] {event.code.value}: {event.message}", file=sys.stderr)
                    return 1
        return 0
    except StreamError as e:
        print(f"[llmgate] {e.code.value}: {e.message}", file=sys.stderr)
        return 1
    finally:
        shutdown_telemetry()


def cmd_providers(args):
    """Print the resolved provider map (secrets redacted)."""
    sys.exit(asyncio.run(_providers(args)))


def cmd_chat(args):
    """Send one prompt and stream the reply to stdout."""
    try:
        code = asyncio.run(_chat(args))
    except KeyboardInterrupt:
        code = 130
    sys.exit(code)


def main(argv=None):
    p = argparse.ArgumentParser(prog="llmgate", description="LLM provider gateway")
    p.add_argument(
        "--config-dir",
        default=".",
        help="Directory to search (upwards) for llmgate.toml (default: .)",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    sp = sub.add_parser("providers", help="Resolve and list providers")
    sp.add_argument("--json", action="store_true", help="Print the provider map as JSON")
    sp.add_argument("--no-discovery", action="store_true", help="Skip live model discovery")
    sp.set_defaults(func=cmd_providers)

    sc = sub.add_parser("chat", help="Stream a single completion")
    sc.add_argument("provider")
    sc.add_argument("model")
    sc.add_argument("prompt")
    sc.add_argument("--session", default="default", help="Continuity session key")
    sc.set_defaults(func=cmd_chat)

    args = p.parse_args(argv)
    args.func(args)


if __name__ == "__main__":
    main()
