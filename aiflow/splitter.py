import re

from loguru import logger

from .models import DiffUnit
from .tokens import estimate_tokens

FILE_HEADER = re.compile(r"^diff --git a/(.*?) b/(.*?)$", re.MULTILINE)

# diff --git, index, --- and +++ lines
HEADER_LINES = 4

DIFF_PATTERNS = [
    re.compile(r"^diff --git", re.MULTILINE),
    re.compile(r"^index [a-f0-9]+\.\.[a-f0-9]+", re.MULTILINE),
    re.compile(r"^@@.*@@", re.MULTILINE),
    re.compile(r"^[+\-]", re.MULTILINE),
    re.compile(r"^\+\+\+ b/", re.MULTILINE),
    re.compile(r"^--- a/", re.MULTILINE),
]


def is_valid_diff(diff):
    if not diff or not diff.strip():
        return False
    return any(pattern.search(diff) for pattern in DIFF_PATTERNS)


def looks_like_code_change(diff):
    """Looser check for input that is not a proper diff but still carries changes."""
    return diff.startswith(("+", "-")) or "@@" in diff or "diff" in diff


def split_by_file(diff):
    """
    Splits a full diff into one entry per file, keyed by the file path.
    Each entry spans from its `diff --git` header up to the next header.
    """
    file_diffs = {}
    if not diff.strip():
        return file_diffs

    matches = list(FILE_HEADER.finditer(diff))
    if not matches:
        logger.debug("No git diff file headers found, treating the entire diff as a single file")
        file_diffs["unknown"] = diff
        return file_diffs

    for ix, match in enumerate(matches):
        end = matches[ix + 1].start() if ix + 1 < len(matches) else len(diff)
        # a path repeated under several headers keeps its first position
        path = match.group(1)
        file_diffs[path] = file_diffs.get(path, "") + diff[match.start():end]

    logger.debug(f"Split diff into {len(file_diffs)} files")
    return file_diffs


def split_units(diff):
    return [DiffUnit(path, content) for path, content in split_by_file(diff).items()]


def split_oversized_unit(file_diff, max_tokens):
    """
    Splits a single file's diff into pieces of at most `max_tokens` each.
    Every piece starts with the file's header lines so it can be read on its
    own. A line that is bigger than the budget by itself ends up alone in its
    own piece.
    """
    lines = file_diff.split("\n")
    header = "\n".join(lines[:HEADER_LINES])
    header_tokens = estimate_tokens(header + "\n")

    chunks = []
    current, current_tokens = [], header_tokens
    for line in lines[HEADER_LINES:]:
        line_tokens = estimate_tokens(line + "\n")
        if current and current_tokens + line_tokens > max_tokens:
            chunks.append(header + "\n" + "".join(current))
            current, current_tokens = [], header_tokens
        current.append(line + "\n")
        current_tokens += line_tokens

    if current:
        chunks.append(header + "\n" + "".join(current))
    elif not chunks:
        # nothing but header lines, cannot be split any further
        chunks.append(file_diff)

    logger.debug(f"Split oversized file diff into {len(chunks)} pieces")
    return chunks
