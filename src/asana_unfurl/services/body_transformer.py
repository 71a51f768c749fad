"""
Rewrites Asana URLs in a pull request body into titled markdown links.

Titles are resolved first, concurrently and at most once per task GID. The
body is then rewritten line by line so a replacement can never reach into
markdown on a neighbouring line:

1. Existing ``[label](asana-url)`` links are reconciled with the task title.
2. Plain Asana URLs outside any markdown link become ``[title](url)``.

Every occurrence handled in either pass is counted, including existing links
whose label already matches and are therefore left as they are.
"""

import re
import asyncio
import inspect
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, List, NamedTuple, Optional, Tuple, Union

from .task_id_extractor import extract_task_ids

logger = logging.getLogger('asana_unfurl')

TitleLookup = Callable[[str], Union[Awaitable[str], str]]

ASANA_URL_PATTERN = re.compile(r'https://app\.asana\.com/[^\s<>"()]+')
# A label is either balanced text with one level of nested [...] or, failing
# that, any run of characters up to the first ]
LINK_LABEL = r'(?:(?:[^\[\]]|\[[^\[\]]*\])+|[^\]]+)'
ASANA_MARKDOWN_LINK_PATTERN = re.compile(
    r'\[(?P<text>' + LINK_LABEL + r')\]\((?P<url>https://app\.asana\.com/[^)]+)\)'
)
MARKDOWN_LINK_PATTERN = re.compile(r'\[' + LINK_LABEL + r'\]\([^)]+\)')


@dataclass(frozen=True)
class TaskReference:
    """A URL paired with the single task GID found in it."""
    url: str
    task_id: str


@dataclass(frozen=True)
class TaskInfo:
    """
    Resolved task data for one URL.

    Attributes:
        task_id: Asana task GID
        title: Task title as returned by the lookup
        safe_title: Title with square brackets swapped for parentheses
    """
    task_id: str
    title: str
    safe_title: str


@dataclass(frozen=True)
class MarkdownLinkRange:
    """Half-open character span of a markdown link within a line."""
    start: int
    end: int

    def contains(self, start: int, end: int) -> bool:
        return self.start <= start and end <= self.end


class TransformResult(NamedTuple):
    new_body: str
    changed: bool
    count: int


def sanitize_title_for_markdown(title: str) -> str:
    """Replace square brackets so the title is safe as a markdown link label."""
    return title.replace('[', '(').replace(']', ')')


def collect_asana_urls(text: str) -> List[str]:
    """Return the unique Asana URLs in text, in order of first appearance."""
    return list(dict.fromkeys(match.group(0) for match in ASANA_URL_PATTERN.finditer(text)))


def find_markdown_link_ranges(line: str) -> List[MarkdownLinkRange]:
    """Return the spans of all markdown links in line."""
    return [MarkdownLinkRange(m.start(), m.end()) for m in MARKDOWN_LINK_PATTERN.finditer(line)]


def _task_references(urls: List[str]) -> List[TaskReference]:
    references = []
    for url in urls:
        task_ids = extract_task_ids(url)
        if len(task_ids) == 1:
            references.append(TaskReference(url=url, task_id=task_ids[0]))
        elif len(task_ids) > 1:
            logger.warning("Found multiple task IDs in a single URL, skipping: %s", url)
        else:
            logger.debug("No valid Asana task ID found in URL: %s", url)
    return references


async def _fetch_title(fetch_task_title: TitleLookup, task_id: str) -> str:
    title = fetch_task_title(task_id)
    if inspect.isawaitable(title):
        title = await title
    return title


async def resolve_task_infos(urls: List[str], fetch_task_title: TitleLookup) -> Dict[str, TaskInfo]:
    """
    Look up the title for every URL that names exactly one task.

    Lookups run concurrently, one per distinct task GID. A failed lookup is
    logged and drops only the URLs that depend on it.

    Returns:
        Mapping of URL to TaskInfo, in the order the URLs were given
    """
    references = _task_references(urls)
    task_ids = list(dict.fromkeys(ref.task_id for ref in references))

    results = await asyncio.gather(
        *(_fetch_title(fetch_task_title, task_id) for task_id in task_ids),
        return_exceptions=True
    )

    titles: Dict[str, str] = {}
    for task_id, result in zip(task_ids, results):
        if isinstance(result, Exception):
            logger.warning("Failed to fetch Asana task %s: %s", task_id, result)
            continue
        if isinstance(result, BaseException):
            raise result
        titles[task_id] = result

    task_infos = {}
    for ref in references:
        title = titles.get(ref.task_id)
        if title is None:
            continue
        task_infos[ref.url] = TaskInfo(
            task_id=ref.task_id,
            title=title,
            safe_title=sanitize_title_for_markdown(title)
        )
    return task_infos


def _reconcile_markdown_links(line: str, task_infos: Dict[str, TaskInfo]) -> Tuple[str, int]:
    """
    Update the labels of existing Asana markdown links in a line.

    Returns:
        Tuple of (new_line, links_processed)
    """
    parts = []
    position = 0
    processed = 0

    for match in ASANA_MARKDOWN_LINK_PATTERN.finditer(line):
        task_info = task_infos.get(match.group('url'))
        if task_info is None:
            continue

        processed += 1
        link_text = match.group('text')
        # A label holding '[' is a nested-bracket title from an earlier run
        if link_text == task_info.title or '[' in link_text:
            logger.debug("Link text already matches task title: %s", link_text)
            continue

        parts.append(line[position:match.start()])
        parts.append(f"[{task_info.safe_title}]({match.group('url')})")
        position = match.end()
        logger.debug("Updated markdown link text from '%s' to '%s'", link_text, task_info.safe_title)

    parts.append(line[position:])
    return ''.join(parts), processed


def _link_plain_urls(line: str, task_infos: Dict[str, TaskInfo]) -> Tuple[str, int]:
    """
    Turn plain Asana URLs outside markdown links into titled links.

    Returns:
        Tuple of (new_line, urls_linked)
    """
    link_ranges = find_markdown_link_ranges(line)
    parts = []
    position = 0
    linked = 0

    for match in ASANA_URL_PATTERN.finditer(line):
        url = match.group(0)
        task_info = task_infos.get(url)
        if task_info is None:
            continue
        if any(link_range.contains(match.start(), match.end()) for link_range in link_ranges):
            continue

        parts.append(line[position:match.start()])
        parts.append(f"[{task_info.safe_title}]({url})")
        position = match.end()
        linked += 1
        logger.debug("Converted plain URL to markdown link: %s", url)

    parts.append(line[position:])
    return ''.join(parts), linked


def rewrite_body(body: str, task_infos: Dict[str, TaskInfo]) -> TransformResult:
    """Apply resolved task titles to every line of body."""
    lines = body.split('\n')
    count = 0

    for i, line in enumerate(lines):
        line, processed = _reconcile_markdown_links(line, task_infos)
        line, linked = _link_plain_urls(line, task_infos)
        lines[i] = line
        count += processed + linked

    return TransformResult(new_body='\n'.join(lines), changed=count > 0, count=count)


async def transform_pr_body(body: Optional[str], fetch_task_title: TitleLookup) -> TransformResult:
    """
    Unfurl Asana URLs in a pull request body into markdown links with task titles.

    Args:
        body: The original pull request body
        fetch_task_title: Callable returning the title for a task GID, either
            directly or as an awaitable. It may raise; the affected URLs are
            then left untouched.

    Returns:
        TransformResult of (new_body, changed, count)
    """
    if not body:
        return TransformResult(new_body='', changed=False, count=0)

    urls = collect_asana_urls(body)
    logger.info("Found %d unique Asana URLs", len(urls))

    task_infos = await resolve_task_infos(urls, fetch_task_title)
    if not task_infos:
        logger.info("No Asana task titles resolved, leaving body unchanged")
        return TransformResult(new_body=body, changed=False, count=0)

    result = rewrite_body(body, task_infos)
    logger.info("Processed %d Asana link occurrences", result.count)
    return result
