"""CLI harness for driving a conversation from the terminal."""

from __future__ import annotations

import argparse
import logging
import shlex
import time
from pathlib import Path
from typing import Any, List, Optional

from .config import AppConfig
from .interfaces import AudioSource
from .models import BehaviorOutput, DialogOutput, Response
from .services.http_transport import HttpTransport
from .services.mic_capture import SoundDeviceCapture
from .session import SessionController

logger = logging.getLogger(__name__)

HELP_TEXT = """Commands:
  <text>                  send text input
  /activity NAME          send an activity name or id
  /event NAME [k=v ...]   send an event with optional parameters
  /goto RESPONSE_ID       jump to a response
  /get NAME [NAME ...]    read entity values
  /set NAME=VALUE ...     write entity values
  /wait                   wait for the timed response interval, then poll
  /wav PATH               send a 16 kHz mono 16-bit WAV file
  /quit                   exit"""


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def build_session(config: AppConfig) -> SessionController:
    """Wire up a session with the HTTP transport and the configured context."""
    transport = HttpTransport(timeout=config.request_timeout)
    return SessionController(transport, context=config.request_context())


def format_response(response: Response) -> str:
    """Render a response for the console."""
    if not response.status.success:
        return f"[error {response.status.code}] {response.status.message}"

    lines: List[str] = []
    if response.asr_hypothesis:
        lines.append(f"(heard: {response.asr_hypothesis})")
    for output in response.outputs:
        if isinstance(output, DialogOutput):
            speaker = f"{output.character}: " if output.character else ""
            lines.append(f"{speaker}{output.text}")
        elif isinstance(output, BehaviorOutput):
            params = f" {output.parameters}" if output.parameters else ""
            lines.append(f"<{output.behavior}>{params}")
    for entity in response.entities:
        lines.append(f"{entity.name} = {entity.value!r} ({entity.kind})")
    if response.timed_response_interval is not None:
        lines.append(f"(timed response in {response.timed_response_interval}s, type /wait)")
    return "\n".join(lines) if lines else "(no output)"


def _parse_value(raw: str) -> Any:
    lowered = raw.lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    for cast in (int, float):
        try:
            return cast(raw)
        except ValueError:
            continue
    return raw


def handle_command(session: SessionController, line: str, last: Optional[Response] = None) -> Optional[Response]:
    """
    Run one console command against the session.

    Returns the call's response, or ``None`` when the line was not a call.
    """

    line = line.strip()
    if not line:
        return None
    if not line.startswith("/"):
        return session.send_text(line)

    try:
        command, *args = shlex.split(line)
    except ValueError as exc:
        print(f"[input error] {exc}")
        return None

    if command == "/activity" and args:
        return session.send_activity(" ".join(args))
    if command == "/event" and args:
        parameters = dict(arg.split("=", 1) for arg in args[1:] if "=" in arg)
        return session.send_event(args[0], {k: _parse_value(v) for k, v in parameters.items()})
    if command == "/goto" and args:
        return session.go_to(args[0])
    if command == "/get" and args:
        return session.get_entities(args)
    if command == "/set" and args:
        entities = []
        for arg in args:
            name, _, value = arg.partition("=")
            entities.append({"name": name, "value": _parse_value(value)})
        return session.set_entities(entities)
    if command == "/wait":
        interval = last.timed_response_interval if last is not None else None
        if interval:
            time.sleep(interval)
        return session.check_for_timed_response()
    if command == "/wav" and args:
        try:
            audio = Path(args[0]).read_bytes()
        except OSError as exc:
            print(f"[input error] Cannot read {args[0]}: {exc.strerror or exc}")
            return None
        return session.send_audio(audio)

    print(HELP_TEXT)
    return None


def run_console(session: SessionController, first: Response) -> None:
    print(format_response(first))
    last = first
    while True:
        try:
            line = input("You: ")
        except EOFError:
            return
        if line.strip() in ("/quit", "/exit"):
            return
        response = handle_command(session, line, last)
        if response is not None:
            print(format_response(response))
            last = response


def run_audio(session: SessionController, first: Response, source: AudioSource) -> None:
    print(format_response(first))
    while True:
        try:
            line = input("Press Enter to speak (or type 'quit'): ")
        except EOFError:
            return
        if line.strip().lower() in ("quit", "exit"):
            return

        failure = session.start_audio()
        if failure is not None:
            print(format_response(failure))
            return
        source.capture(session.add_audio)
        print(format_response(session.stop_audio()))


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Talk to a conversation project from the terminal.")
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )
    parser.add_argument(
        "--mode",
        choices=["console", "audio"],
        help="Override CONVERSATION_MODE (console/audio).",
    )
    parser.add_argument(
        "--project",
        help="Override CONVERSATION_PROJECT.",
    )
    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> None:
    args = parse_args(argv)
    _configure_logging(args.verbose)
    config = AppConfig.from_env()
    if args.mode:
        config.mode = args.mode
    if args.project:
        config.project = args.project
    if not config.project:
        raise SystemExit("CONVERSATION_PROJECT (or --project) must be set.")

    session = build_session(config)
    first = session.start(config.project)
    if not first.status.success:
        raise SystemExit(format_response(first))
    logger.info("Conversation %s started", session.get_conversation_id())

    if config.mode == "audio":
        run_audio(session, first, SoundDeviceCapture(max_seconds=config.record_seconds))
    else:
        run_console(session, first)


if __name__ == "__main__":
    main()
