import re
import logging
from typing import List, Optional, Pattern

logger = logging.getLogger('asana_unfurl')


class TaskUrlRule:
    """
    One Asana URL shape that can yield a task GID.

    Rules are tried in order on each line; the first one returning a GID wins.
    A rule with ``skip_marker`` is disabled for any line containing that marker.
    """

    def __init__(self, name: str, pattern: str, skip_marker: Optional[str] = None):
        self.name = name
        self.PATTERN: Pattern[str] = re.compile(pattern)
        self.skip_marker = skip_marker

    def match(self, line: str) -> Optional[str]:
        if self.skip_marker and self.skip_marker in line:
            return None

        match = self.PATTERN.search(line)
        if not match:
            return None

        # A match without a captured GID counts as no match
        return match.group('task_gid') or None

    def __repr__(self) -> str:
        return f"TaskUrlRule({self.name!r})"


ASANA_URL_PREFIX = r'https://app\.asana\.com'

TASK_URL_RULES: List[TaskUrlRule] = [
    TaskUrlRule(
        'task/item',
        ASANA_URL_PREFIX + r'(?:.*?)/(?:task|item)/(?P<task_gid>\d+)'
    ),
    TaskUrlRule(
        'project/task',
        ASANA_URL_PREFIX + r'(?:.*?)/project/(?:\d+)/task/(?P<task_gid>\d+)'
    ),
    # e.g. https://app.asana.com/1/7423375154038/project/1201497668075595/task/1209677646439414
    TaskUrlRule(
        'workspace/project/task',
        ASANA_URL_PREFIX + r'/\d+/\d+/project/\d+/task/(?P<task_gid>\d+)'
    ),
    # Legacy V0 links; the last numeric segment is the task. On a line with
    # a /task/ marker the numbers here would be workspace or project ids.
    TaskUrlRule(
        'v0',
        ASANA_URL_PREFIX + r'(?:/(?:[0-9]+|board|search|inbox))+(?:/(?P<task_gid>[0-9]+))+',
        skip_marker='/task/'
    ),
    TaskUrlRule(
        'inbox/item',
        ASANA_URL_PREFIX + r'/inbox/\d+/item/(?P<task_gid>\d+)'
    ),
]


def _split_lines(text: str) -> List[str]:
    lines = []
    for chunk in text.split('\r\n'):
        lines.extend(chunk.split('\n'))
    return lines


def _task_gid_from_line(line: str) -> Optional[str]:
    logger.debug("Processing line: %s", line)

    for rule in TASK_URL_RULES:
        task_gid = rule.match(line)
        if task_gid:
            logger.debug("Found match using %s pattern: %s", rule.name, task_gid)
            return task_gid

    logger.debug("No match found for line")
    return None


def extract_task_ids(text: str) -> List[str]:
    """
    Extract Asana task GIDs from text.

    Each line contributes at most one GID. The result is deduplicated and
    sorted by plain string comparison, so "10" sorts before "9".

    Args:
        text: Text containing Asana task URLs, usually a single URL

    Returns:
        Sorted list of unique task GIDs
    """
    logger.info("Extracting Asana task IDs from: %s", text)

    task_gids = set()
    for line in _split_lines(text):
        task_gid = _task_gid_from_line(line)
        if task_gid:
            task_gids.add(task_gid)

    result = sorted(task_gids)
    logger.info("Extracted task GIDs: %s", result)
    return result
