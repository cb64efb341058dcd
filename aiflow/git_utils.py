import os
import sys
import tempfile
from loguru import logger
from unidiff import PatchSet, UnidiffParseError
from .utils import run


def get_git_diff(context_size):
    if run("git diff --cached --quiet --exit-code").returncode == 0:
        logger.error("No staged changes found, please stage the desired changes.")
        sys.exit(1)

    result = run(
        f"git diff --inter-hunk-context={context_size} --unified={context_size} --minimal -p --staged",
        capture_output=True)
    if result.returncode != 0:
        logger.error(f"Failed to get git diff: {result.stderr.decode('utf-8', errors='ignore')}")
        sys.exit(1)

    if b"CRLF" in result.stderr:
        logger.warning("Warning: Line endings (CRLF vs LF) may cause issues. Consider configuring Git properly.")

    return result.stdout.decode('utf-8', errors='replace')


def parse_diff(git_diff):
    for _ in range(5):
        try:
            return PatchSet.from_string(git_diff)
        except UnidiffParseError:
            git_diff += os.linesep
    raise UnidiffParseError("Failed to parse diff")


def summarize_diff(git_diff):
    """Returns one (path, added, removed) tuple per file, or an empty list if the diff can't be parsed."""
    try:
        patch_set = parse_diff(git_diff)
    except UnidiffParseError as e:
        logger.debug(f"Could not summarize diff: {e}")
        return []

    summary = []
    for patched_file in patch_set:
        if patched_file.is_binary_file:
            logger.debug(f"Binary file {patched_file.path}")
        summary.append((patched_file.path, patched_file.added, patched_file.removed))
    return summary


def commit(message):
    with tempfile.NamedTemporaryFile(mode='w', encoding='utf-8', prefix='.tmp_commit_', suffix='.txt', delete=False) as fd:
        fd.write(message)
        filename = fd.name

    try:
        result = run(["git", "commit", "-F", filename])
    finally:
        os.unlink(filename)

    if result.returncode != 0:
        logger.error(f"Failed to commit changes: {result.stdout.decode('utf-8', errors='ignore')}\n{result.stderr.decode('utf-8', errors='ignore')}")
        return False
    return True
