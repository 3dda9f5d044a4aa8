# nebchat/app.py
from __future__ import annotations
import argparse, logging, platform, sys
from typing import Optional, Sequence

from openai import OpenAIError

from .paths import data_layout
from .settings import load_settings, logging_settings, vendor_settings
from .logging_config import init_logging
from .constants import APP_NAME, __version__
from nebchat.infra.llm.base import ChatMessage, ChatOptions
from nebchat.infra.llm.backend_adapter import make_stream_func_from_client, user_prompt
from nebchat.infra.llm.errors import ConfigurationError, StreamInterruptedError
from nebchat.infra.llm.openai_client import new_client_compatible


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog=APP_NAME, description="Chat with an OpenAI-compatible vendor (default: Nebius)")
    p.add_argument("prompt", nargs="?", help="User message; read from stdin when omitted")
    p.add_argument("--list-models", action="store_true", help="List allow-listed models and exit")
    p.add_argument("-m", "--model", type=str, help="Model id, e.g. meta-llama/Meta-Llama-3.1-8B-Instruct")
    p.add_argument("-s", "--stream", action="store_true", help="Print fragments as they arrive")
    p.add_argument("-r", "--raw", action="store_true", help="Send model + messages only (provider defaults)")
    p.add_argument("--system", type=str, default=None, help="System message sent before the prompt")
    p.add_argument("-t", "--temperature", type=float, default=0.7)
    p.add_argument("-T", "--top-p", type=float, default=0.9)
    p.add_argument("-P", "--presence-penalty", type=float, default=0.0)
    p.add_argument("-F", "--frequency-penalty", type=float, default=0.0)
    p.add_argument("--seed", type=int, default=0, help="0 leaves the seed unset")
    p.add_argument("--base-url", type=str, default=None, help="Override the vendor API base URL")

    # logging / paths
    p.add_argument("--data-dir", type=str, default=None, help="Override data directory")
    p.add_argument("--log-level", type=str, default=None, help="Log file level: DEBUG, INFO, WARNING, ERROR")
    p.add_argument("-v", "--verbose", action="store_true", help="Echo the log file level on stderr too")
    p.add_argument("--no-console-log", action="store_true", help="Disable console logging")
    p.add_argument("--version", action="version", version=f"{APP_NAME} {__version__}")
    return p.parse_args(argv)


def _read_prompt(args: argparse.Namespace) -> str:
    if args.prompt:
        return args.prompt
    if sys.stdin is None or sys.stdin.isatty():
        return ""
    return sys.stdin.read().strip()



def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    layout = data_layout(args.data_dir)

    try:
        cfg = load_settings(layout.settings_file)
        log_cfg = logging_settings(cfg)
    except ConfigurationError as exc:
        print(str(exc), file=sys.stderr)
        return 2
    vendor = vendor_settings(cfg)

    client = new_client_compatible(
        vendor.name,
        vendor.base_url,
        base_url=args.base_url,
        model_prefixes=vendor.model_prefixes,
    )

    level = (args.log_level or log_cfg.level).upper()
    init_logging(
        layout.log_file,
        level=level,
        console_level=level if args.verbose else None,
        max_bytes=log_cfg.max_bytes,
        backup_count=log_cfg.backup_count,
        also_console=(not args.no_console_log),
        secrets=(client.config.api_key,),
    )
    log = logging.getLogger("boot")
    log.debug("=== %s %s starting ===", APP_NAME, __version__)
    log.debug("Platform: %s | Python: %s", platform.platform(), platform.python_version())
    log.debug("Data dir: %s | Settings: %s", layout.root, layout.settings_file)

    try:
        client.config.validate()
    except ConfigurationError as exc:
        print(str(exc), file=sys.stderr)
        return 2

    try:
        if args.list_models:
            for model_id in client.list_models():
                print(model_id)
            return 0

        if not args.model:
            print("--model is required", file=sys.stderr)
            return 2
        prompt = _read_prompt(args)
        if not prompt:
            print("no prompt given (argument or stdin)", file=sys.stderr)
            return 2

        options = ChatOptions(
            model=args.model,
            temperature=args.temperature,
            top_p=args.top_p,
            presence_penalty=args.presence_penalty,
            frequency_penalty=args.frequency_penalty,
            seed=args.seed,
            raw=args.raw,
        )
        build = user_prompt(args.system)
        log.info("%s: sending to %s (stream=%s, raw=%s)", client.vendor_name, options.model, args.stream, options.raw)

        if args.stream:
            stream = make_stream_func_from_client(client, options=options, build_messages=build)
            try:
                for fragment in stream(prompt):
                    sys.stdout.write(fragment)
                    sys.stdout.flush()
            except StreamInterruptedError as exc:
                log.error("%s stream interrupted: %s", client.vendor_name, exc)
                print("\n[error] stream interrupted", file=sys.stderr)
                return 1
            return 0

        messages: list[ChatMessage] = build(prompt)
        print(client.send(messages, options))
        return 0
    except OpenAIError as exc:
        log.error("%s request failed: %s", client.vendor_name, exc)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
