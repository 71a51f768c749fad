#!/usr/bin/env python3
"""
Unfurl Asana URLs in GitHub pull request descriptions.

Plain Asana task URLs in a pull request body are replaced with markdown
links labelled with the task title, and existing Asana markdown links are
brought in line with the current title.

Usage:
    python unfurl_asana_urls.py action
    python unfurl_asana_urls.py pr --owner OWNER --repo REPO --pr-number 42
    python unfurl_asana_urls.py transform description.md

Requirements:
    pip install -e .
"""

import sys

from asana_unfurl.cli import main


if __name__ == '__main__':
    sys.exit(main())
