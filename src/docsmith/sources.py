"""Load a local directory as a SourceRecord corpus.

Stands in for the remote fetch step when analysing a checkout on disk:
honours .gitignore and .docsmith-ignore, skips dot-paths and binaries, and
truncates each file the way the fetcher does.
"""

import re
from pathlib import Path
from typing import NamedTuple

from .logging_config import get_logger
from .models import SourceRecord

logger = get_logger(__name__)

IGNORE_FILES = (".gitignore", ".docsmith-ignore")
MAX_CONTENT_CHARS = 30_000
MAX_FILE_BYTES = 1_000_000
BINARY_SUFFIXES = frozenset({
    ".png", ".jpg", ".jpeg", ".gif", ".bmp", ".ico", ".webp", ".pdf",
    ".zip", ".gz", ".tar", ".jar", ".whl", ".so", ".dll", ".exe", ".pyc",
    ".woff", ".woff2", ".ttf", ".eot", ".mp3", ".mp4", ".lock",
})


class IgnoreRule(NamedTuple):
    pattern: re.Pattern
    directory_only: bool
    negated: bool


def parse_ignore_line(line: str) -> IgnoreRule | None:
    """Translate one gitignore-style line into a rule, or None for blanks/comments."""
    line = line.strip()
    if not line or line.startswith("#"):
        return None

    negated = line.startswith("!")
    if negated:
        line = line[1:]

    directory_only = line.endswith("/")
    if directory_only:
        line = line[:-1]

    anchored = line.startswith("/")
    if anchored:
        line = line[1:]

    regex = re.escape(line)
    regex = regex.replace(r"\*\*", "\0")
    regex = regex.replace(r"\*", r"[^/]*")
    regex = regex.replace(r"\?", r"[^/]")
    regex = regex.replace("\0", r".*")

    prefix = "^" if anchored else "(^|/)"
    # A match may end at a slash: the rule then covers everything below that directory
    suffix = "(/|$)"
    try:
        return IgnoreRule(re.compile(prefix + regex + suffix), directory_only, negated)
    except re.error:
        return None


def load_ignore_rules(root: Path) -> list[IgnoreRule]:
    """Load rules from .gitignore then .docsmith-ignore; later rules win."""
    rules = []
    for name in IGNORE_FILES:
        path = root / name
        if not path.is_file():
            continue
        try:
            lines = path.read_text(encoding="utf-8").splitlines()
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Could not read %s: %s", path, e)
            continue
        rules.extend(rule for rule in map(parse_ignore_line, lines) if rule)
    return rules


def is_ignored(rel_path: str, rules: list[IgnoreRule], is_dir: bool = False) -> bool:
    """Check a repo-relative, forward-slash path against ignore rules."""
    parts = rel_path.split("/")
    if any(p.startswith(".") for p in parts):
        return True

    ignored = False
    for rule in rules:
        if rule.directory_only:
            # A file only matches through one of its parent directories
            matched = any(
                is_dir or m.group(0).endswith("/")
                for m in rule.pattern.finditer(rel_path)
            )
        else:
            matched = bool(rule.pattern.search(rel_path))
        if matched:
            ignored = not rule.negated
    return ignored


def load_source_records(
    root: Path | str,
    max_chars: int = MAX_CONTENT_CHARS,
    max_file_bytes: int = MAX_FILE_BYTES,
) -> list[SourceRecord]:
    """Read every indexable text file under root.

    Args:
        root: Directory to walk
        max_chars: Each file's content is truncated to this many characters
        max_file_bytes: Larger files are skipped

    Returns:
        SourceRecords sorted by path
    """
    root = Path(root).resolve()
    rules = load_ignore_rules(root)
    records = []

    for path in sorted(root.rglob("*")):
        if not path.is_file():
            continue
        rel_path = path.relative_to(root).as_posix()
        if is_ignored(rel_path, rules):
            continue
        if path.suffix.lower() in BINARY_SUFFIXES:
            continue
        try:
            if path.stat().st_size > max_file_bytes:
                logger.debug("Skipping large file %s", rel_path)
                continue
            content = path.read_text(encoding="utf-8")
        except (UnicodeDecodeError, OSError):
            continue
        records.append(SourceRecord(path=rel_path, content=content[:max_chars]))

    logger.info("Loaded %s source files from %s", len(records), root)
    return records
