"""
Command-line interface for unfurling Asana URLs in pull request descriptions.

Subcommands
-----------
action     Run inside a GitHub Actions workflow (configuration from the environment)
pr         Process an explicit pull request
transform  Rewrite a body read from a file or stdin and print the result

Tokens are read from command-line options, environment variables (a local
``.env`` file is honoured), or prompted for when running interactively.
"""

import os
import sys
import argparse
import getpass
import logging
from typing import List, Optional

from dotenv import load_dotenv

from .exceptions import ConfigurationError, UnfurlError, ValidationError
from .clients.asana_client import AsanaClient
from .config.unfurl_config import AsanaConfig, ConfigLoader, GitHubConfig, UnfurlConfig
from .core.orchestrator import UnfurlOrchestrator, unfurl_text
from .utils.actions import set_failed
from .utils.logging_config import setup_logger

logger = logging.getLogger('asana_unfurl')


def create_main_parser() -> argparse.ArgumentParser:
    """Create the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog='asana-unfurl',
        description='Unfurl Asana URLs in pull request descriptions into titled markdown links',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
EXAMPLES:
  # Inside a GitHub Actions workflow
  asana-unfurl action

  # Against a specific pull request, without writing the result back
  asana-unfurl --dry-run pr --owner myorg --repo myrepo --pr-number 42

  # Rewrite a local file and print the result
  asana-unfurl transform description.md

ENVIRONMENT:
  GITHUB_TOKEN / INPUT_GITHUBTOKEN   GitHub token
  ASANA_TOKEN / INPUT_ASANATOKEN     Asana personal access token
"""
    )
    parser.add_argument('--log-level', default='INFO',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='Logging verbosity (default: INFO)')
    parser.add_argument('--log-file', help='Also write logs to this file')
    parser.add_argument('--dry-run', action='store_true',
                        help='Compute the new body but do not update the pull request')

    subparsers = parser.add_subparsers(dest='command', metavar='COMMAND')
    subparsers.required = True

    subparsers.add_parser('action', help='Run inside a GitHub Actions workflow')

    pr_parser = subparsers.add_parser('pr', help='Process an explicit pull request')
    pr_parser.add_argument('--config', help='JSON configuration file')
    pr_parser.add_argument('--owner', help='GitHub repository owner')
    pr_parser.add_argument('--repo', help='GitHub repository name')
    pr_parser.add_argument('--pr-number', type=int, help='Pull request number')
    pr_parser.add_argument('--github-token', help='GitHub token (will prompt if not provided)')
    pr_parser.add_argument('--asana-token', help='Asana token (will prompt if not provided)')

    transform_parser = subparsers.add_parser('transform', help='Rewrite a body from a file or stdin')
    transform_parser.add_argument('file', nargs='?', help='File to read (default: stdin)')
    transform_parser.add_argument('--asana-token', help='Asana token (will prompt if not provided)')

    return parser


def _resolve_token(value: Optional[str], env_names, prompt_text: str) -> str:
    if value:
        return value
    for name in env_names:
        env_value = os.getenv(name)
        if env_value:
            return env_value
    if sys.stdin.isatty():
        return getpass.getpass(prompt_text)
    raise ValidationError(f"Missing token: set one of {', '.join(env_names)}")


def _build_pr_config(args: argparse.Namespace) -> UnfurlConfig:
    if args.config:
        overrides = {'pr_number': args.pr_number} if args.pr_number else None
        config = ConfigLoader.load_from_file(args.config, overrides=overrides)
        config.dry_run = config.dry_run or args.dry_run
        return config

    missing = [name for name in ('owner', 'repo', 'pr_number') if not getattr(args, name)]
    if missing:
        raise ValidationError(
            "Missing required arguments: " + ', '.join('--' + name.replace('_', '-') for name in missing)
        )

    github_token = _resolve_token(args.github_token, ConfigLoader.GITHUB_TOKEN_VARS, 'GitHub token: ')
    asana_token = _resolve_token(args.asana_token, ConfigLoader.ASANA_TOKEN_VARS, 'Asana token: ')

    return UnfurlConfig(
        github=GitHubConfig(owner=args.owner, repo=args.repo, token=github_token),
        asana=AsanaConfig(token=asana_token),
        pr_number=args.pr_number,
        dry_run=args.dry_run
    )


def run_transform(args: argparse.Namespace) -> int:
    asana_token = _resolve_token(args.asana_token, ConfigLoader.ASANA_TOKEN_VARS, 'Asana token: ')

    if args.file:
        try:
            with open(args.file, 'r', encoding='utf-8') as f:
                body = f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigurationError(f"Cannot read input file {args.file}: {e}")
    else:
        body = sys.stdin.read()

    result = unfurl_text(body, AsanaClient(token=asana_token))

    sys.stdout.write(result.new_body)
    logger.info("Processed %d Asana link occurrences", result.count)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the asana-unfurl command."""
    parser = create_main_parser()
    args = parser.parse_args(argv)

    setup_logger(log_level=args.log_level, log_file=args.log_file)
    load_dotenv()

    try:
        if args.command == 'transform':
            return run_transform(args)

        if args.command == 'action':
            config = ConfigLoader.load_from_environment()
            config.dry_run = args.dry_run
        else:
            config = _build_pr_config(args)

        outcome = UnfurlOrchestrator(config).run()
        logger.info("Updated: %s, links processed: %d", outcome.updated, outcome.updated_count)
        return 0

    except UnfurlError as e:
        logger.error("❌ Action failed: %s", e)
        set_failed(f"Action failed: {e}")
        return 1
    except KeyboardInterrupt:
        logger.error("Interrupted")
        return 130


if __name__ == '__main__':
    sys.exit(main())
