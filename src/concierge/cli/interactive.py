#!/usr/bin/env python3
"""
Interactive CLI for the Concierge Conversation Core

A REPL for trying the time normalizer, the name clarification flow and the
reservation helpers by hand.

Usage:
    concierge-repl --locale de

    or

    cd src
    python -m concierge.cli.interactive
"""
import json
import shlex
import sys
import traceback
from datetime import datetime, timezone
from typing import Any, Dict

from concierge.config import config, load_locale_registry
from concierge.conversation import ConversationTurnProcessor
from concierge.disambiguation import DisambiguationStateMachine
from concierge.logging_config import setup_logging
from concierge.memory import InMemoryPendingStore
from concierge.normalization import TimeNormalizer
from concierge.reservations import compute_mutability, parse_reservation_timestamp

SESSION_ID = "repl"


def print_banner(locale: str):
    """Print welcome banner."""
    print("\n" + "=" * 60)
    print(f"🍽️  Concierge Core - Interactive Mode (locale: {locale})")
    print("=" * 60)
    print("\nCommands:")
    print("  - Type a guest message to normalize (and answer an open clarification)")
    print("  - :clarify <name on file> <requested name>   open a name clarification")
    print("  - :classify <identifier>                     classify a reservation identifier")
    print("  - :mutability <iso-target> [<iso-now>]       modify/cancel windows")
    print("  - Type 'quit' or 'exit' to quit")
    print("\nExamples:")
    print("  - 'table for 4 at 19-30'")
    print("  - ':clarify \"Anna Petrova\" Maria'")
    print("  - ':mutability 2025-07-06T19:00:00+00:00'")
    print("=" * 60)


def print_json(data: Dict[str, Any]):
    print()
    print(json.dumps(data, indent=2, ensure_ascii=False, default=str))


def handle_command(processor: ConversationTurnProcessor, line: str, locale: str):
    """Dispatch one ':command' line."""
    try:
        parts = shlex.split(line[1:])
    except ValueError as e:
        print(f"❌ Could not parse command: {e}")
        return
    if not parts:
        return
    command, args = parts[0].lower(), parts[1:]

    if command == "classify":
        print_json(processor.inspect_identifier(" ".join(args)))
    elif command == "clarify":
        if len(args) != 2:
            print("Usage: :clarify <name on file> <requested name>")
            return
        result = processor.open_name_clarification(
            SESSION_ID, args[0], args[1], payload={"guests": 2}, language=locale)
        if result["success"] and result["data"]["prompt"]:
            print(f"\n🤖 {result['data']['prompt']}")
        else:
            print_json(result)
    elif command == "mutability":
        if not args:
            print("Usage: :mutability <iso-target> [<iso-now>]")
            return
        target = parse_reservation_timestamp(args[0])
        now = parse_reservation_timestamp(args[1]) if len(args) > 1 else datetime.now(timezone.utc)
        if target is None or now is None:
            print("❌ Could not parse timestamp")
            return
        print_json(compute_mutability(target, now).to_dict())
    else:
        print(f"❌ Unknown command: {command}")


def interactive_main(locale: str):
    """
    Interactive mode.

    Args:
        locale: Locale used for normalization and prompts
    """
    registry = load_locale_registry()
    processor = ConversationTurnProcessor(
        normalizer=TimeNormalizer(registry),
        state_machine=DisambiguationStateMachine(registry),
        store=InMemoryPendingStore(),
    )
    print_banner(locale)

    while True:
        try:
            line = input("\n💬 Guest: ").strip()

            if not line or line.lower() in ['quit', 'exit', 'q']:
                print("\n👋 Goodbye!")
                break

            if line.startswith(":"):
                handle_command(processor, line, locale)
                continue

            result = processor.process_message(SESSION_ID, line, locale=locale)
            data = result["data"]
            print(f"\n📝 Normalized: {data['normalization']['normalized_message']}")
            for change in data["normalization"]["changes"]:
                print(f"   {change['original']!r} -> {change['normalized']} "
                      f"({change['pattern_kind']}, {change['confidence']})")
            disambiguation = data["disambiguation"]
            if disambiguation:
                if disambiguation["type"] == "reprompt":
                    print(f"\n🤖 {disambiguation['message']}")
                else:
                    print_json(disambiguation)

        except KeyboardInterrupt:
            print("\n\n👋 Goodbye!")
            break

        except Exception as e:
            print(f"\n❌ Error: {e}")
            traceback.print_exc()


def main():
    """Entry point for the interactive CLI."""
    import argparse

    parser = argparse.ArgumentParser(
        description="Concierge Core - Interactive Mode",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument(
        '--locale',
        default=config.DEFAULT_LOCALE,
        help=f'Locale for normalization and prompts (default: {config.DEFAULT_LOCALE})'
    )
    parser.add_argument(
        '--log-level',
        default='WARNING',
        help='Log level for the concierge logger (default: WARNING)'
    )

    args = parser.parse_args()
    setup_logging('concierge', args.log_level, 'pretty')

    try:
        interactive_main(locale=args.locale)
    except KeyboardInterrupt:
        print("\n\n👋 Goodbye!")
    except Exception as e:
        print(f"\n❌ Fatal error: {e}")
        traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
