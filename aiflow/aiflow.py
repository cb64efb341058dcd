#!/usr/bin/env python3
"""
AIFLOW writes commit messages, branch names and merge request text from diffs
"""
import argparse
import json
import sys
from loguru import logger

import openai

from . import __version__
from .api import LLMClient
from .config import load_settings, setup_api_key
from .exceptions import AIFlowError
from .generator import CommitGenerator
from .git_utils import commit, get_git_diff, summarize_diff
from .prompt import display_result, handle_user_input
from .utils import setup_logging


def read_diff(args, context_size):
    if not args.diff_file:
        return get_git_diff(context_size)
    if args.diff_file == "-":
        return sys.stdin.read()
    with open(args.diff_file, "r", encoding="utf-8", errors="replace") as f:
        return f.read()


def generate_changes(args, settings):
    diff = read_diff(args, settings.context_size)

    summary = summarize_diff(diff)
    if summary:
        added = sum(a for _, a, _ in summary)
        removed = sum(r for _, _, r in summary)
        logger.info(f"Analyzing {len(summary)} files (+{added}/-{removed})")
        for path, a, r in summary:
            logger.debug(f"  {path} (+{a}/-{r})")

    llm = LLMClient(settings.api_key, settings.base_url, settings.model, temperature=settings.temperature)
    generator = CommitGenerator(llm, probe_enabled=settings.probe_context_limit)

    def generate():
        return generator.generate_commit_and_branch(diff, settings.language)

    if args.interactive:
        result = handle_user_input(generate)
        if result is None:
            sys.exit(1)
    else:
        result = generate()
        if args.json:
            print(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
        else:
            display_result(result)

    if args.commit:
        if args.diff_file:
            logger.warning("Not committing: the diff was not read from the staged changes.")
        elif commit(result.commit):
            logger.success(f"Committed: {result.commit}")
        else:
            sys.exit(1)

    return result


def main():
    class Formatter(argparse.RawTextHelpFormatter, argparse.ArgumentDefaultsHelpFormatter):
        pass

    PARSER = argparse.ArgumentParser(
        prog="aiflow",
        formatter_class=Formatter,
        allow_abbrev=True,
        description="Without arguments, generates a commit message, branch name and MR text for the staged changes.")
    PARSER.add_argument("-d", "--debug", action="store_true", help="Show debug messages")
    PARSER.add_argument("-m", "--model", action="store", help="Model used for the generations (env: OPENAI_MODEL)")
    PARSER.add_argument("-u", "--base-url", action="store", help="OpenAI compatible API base URL (env: OPENAI_BASE_URL)")
    PARSER.add_argument("-l", "--language", action="store", help="Language of the generated text (env: AIFLOW_LANGUAGE)")
    PARSER.add_argument(
        "-c",
        "--context-size",
        type=int,
        help="Context size of the git diff (lines before and after each hunk)")
    PARSER.add_argument(
        "--no-probe",
        dest="probe_context_limit",
        action="store_const",
        const=False,
        help="Never send probing requests to discover the model's context limit")
    PARSER.add_argument("--log-file", action="store", help="Also write debug logs to this file")
    PARSERS = PARSER.add_subparsers(title="subcommands", dest="action")
    GENERATE_PARSER = PARSERS.add_parser(
        "generate",
        formatter_class=Formatter,
        help="Generates commit information for the staged changes")
    GENERATE_PARSER.add_argument("-f", "--diff-file", action="store", help="Read the diff from this file ('-' for stdin)")
    GENERATE_PARSER.add_argument("-i", "--interactive", action="store_true", help="Accept, regenerate or quit before finishing")
    GENERATE_PARSER.add_argument("--commit", action="store_true", help="Commit the staged changes with the generated message")
    GENERATE_PARSER.add_argument("--json", action="store_true", help="Print the result as JSON")
    SETUP_PARSER = PARSERS.add_parser(
        "setup", help="Performs the initial setup for setting the API key", formatter_class=Formatter)
    SETUP_PARSER.add_argument("api", nargs="?", default="OpenAI", choices=["OpenAI"], help="The API to set up.")

    args = PARSER.parse_args()

    options = {"file_path": args.log_file}
    if args.debug:
        setup_logging("DEBUG", {"function": True, **options})
    else:
        setup_logging("INFO", options)

    logger.info(f"Running aiflow version {__version__}")

    if args.action == "setup":
        setup_api_key(args.api)
        sys.exit(0)

    if not args.action:
        args.action = "generate"
        args.diff_file, args.interactive, args.commit, args.json = None, False, False, False

    settings = load_settings(args)
    if not settings.api_key:
        logger.error("OpenAI API key not found. Please run `aiflow setup` or set OPENAI_KEY first.")
        sys.exit(1)

    logger.info(f"Using {settings.model} to generate commit information in '{settings.language}'...")
    try:
        generate_changes(args, settings)
    except (AIFlowError, openai.OpenAIError) as e:
        logger.error(f"Failed to generate commit information: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
