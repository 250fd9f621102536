"""Command line entry point for the Acorn Slack bot.

Runs the bot over Socket Mode:
    acorn-bot --start
"""

import argparse

from acorn_bot.lib.utils import config
from acorn_bot.lib.utils.secrets import get_slack_credentials
from acorn_bot.slack_bot.ai_service import get_ai_service
from acorn_bot.slack_bot.bot import SlackBot
from acorn_bot.slack_bot.metrics import get_metrics


def main(argv: list | None = None):
    parser = argparse.ArgumentParser(description="Acorn - squirrel-themed Slack assistant backed by Bedrock")
    parser.add_argument("--start", action="store_true", help="Start the bot (requires tokens)")
    parser.add_argument("--status", action="store_true", help="Print the AI backend configuration and exit")
    args = parser.parse_args(argv)

    if args.status:
        ai_service = get_ai_service()
        ai_service.initialize()
        print("=" * 60)
        print("ACORN STATUS")
        print("=" * 60)
        for key, value in ai_service.get_status().items():
            print(f"  {key}: {value}")
        print(f"  alert_channel: {config.ACORN_ALERT_CHANNEL or '(none)'}")
        for key, value in get_slack_credentials().items():
            print(f"  {key}: {'set' if value else 'missing'}")
        print("=" * 60)
    elif args.start:
        bot = SlackBot()
        if bot.is_configured():
            print("Starting Acorn Slack bot...")
            try:
                bot.start(blocking=True)
            except KeyboardInterrupt:
                print("\nShutting down...")
                get_metrics().log_summary()
        else:
            print("Slack tokens not configured. Set SLACK_BOT_TOKEN and SLACK_APP_TOKEN.")
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
