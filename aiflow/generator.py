import openai
from loguru import logger

from .api import language_name, normalize_language, parse_model_output
from .constants import MAX_DIFF_SIZE, MERGE_SEPARATOR, PROMPT_MERGER_BATCH, PROMPT_MERGER_SYSTEM, PROMPT_MERGER_USER
from .context import ContextLimitResolver
from .exceptions import (AIFlowError, BatchProcessingError, DiffTooLargeError, InvalidDiffError, SegmentationError)
from .grouper import pack
from .models import GenerationResult
from .splitter import is_valid_diff, looks_like_code_change, split_units
from .tokens import available_tokens, estimate_tokens


def validate_diff(diff):
    if not diff or not diff.strip():
        raise InvalidDiffError("Empty diff provided")

    if len(diff) > MAX_DIFF_SIZE:
        raise DiffTooLargeError("Diff too large (>10MB), please split into smaller changes")

    if not is_valid_diff(diff):
        logger.warning("Potentially invalid diff format detected, attempting to process anyway")
        if not looks_like_code_change(diff):
            logger.error("Input does not appear to be a valid diff or code change")
            raise InvalidDiffError("Invalid input: expected git diff format")


class CommitGenerator:
    """
    Turns a diff into a commit message, branch name, MR description and title.

    Diffs that fit in the model's context are sent in one request. Larger
    ones are split per file, packed into batches, generated batch by batch
    and the partial results merged with one last request.
    """

    def __init__(self, llm, resolver=None, context_cache=None, probe_enabled=True):
        self.llm = llm
        self.resolver = resolver or ContextLimitResolver(
            cache=context_cache, prober=llm.probe_context_limit, probe_enabled=probe_enabled)

    def generate_commit_and_branch(self, diff, language="en"):
        validate_diff(diff)
        language = normalize_language(language)

        context_limit = self.resolver.resolve(self.llm.model)
        budget = available_tokens(context_limit)
        diff_tokens = estimate_tokens(diff)
        logger.info(f"Estimated diff tokens: {diff_tokens}, available tokens: {budget}")

        if diff_tokens <= budget:
            logger.debug("Using direct processing mode")
            return self.llm.generate(diff, language)

        logger.warning(f"Diff size ({diff_tokens} tokens) exceeds the context budget ({budget} tokens), using batch processing")
        units = split_units(diff)
        if not units:
            raise SegmentationError("Failed to split diff, possibly invalid format")

        chunks = pack(units, budget)
        if not chunks:
            raise SegmentationError("Failed to create diff batches")

        logger.info(f"Processing diff in {len(chunks)} batches")
        results = []
        for ix, chunk in enumerate(chunks, start=1):
            logger.info(f"Processing batch {ix}/{len(chunks)} containing {len(chunk.files)} files")
            try:
                results.append(self.llm.generate(chunk, language))
            except (AIFlowError, openai.OpenAIError) as e:
                logger.error(f"Failed to process batch {ix}: {e}")

        if not results:
            raise BatchProcessingError("All batch processing failed")
        if len(results) < len(chunks):
            logger.warning(f"Only {len(results)}/{len(chunks)} batches processed successfully")

        return self.merge_results(results, language)

    def merge_results(self, results, language):
        if len(results) == 1:
            return results[0]

        logger.info(f"Merging results from {len(results)} batches")
        summaries = "\n\n".join(
            PROMPT_MERGER_BATCH.format(index=ix, **result.to_dict()) for ix, result in enumerate(results, start=1))
        messages = [
            {"role": "system", "content": PROMPT_MERGER_SYSTEM.format(language=language_name(language))},
            {"role": "user", "content": PROMPT_MERGER_USER.format(count=len(results), summaries=summaries)},
        ]

        try:
            merged = parse_model_output(self.llm.complete(messages), "batch merge")
        except (AIFlowError, openai.OpenAIError) as e:
            logger.error(f"Failed to merge batch results: {e}")
            logger.warning("Using fallback strategy to merge results")
            return fallback_merge(results)

        return GenerationResult(merged["commit"], merged["branch"], merged["description"], merged["title"])


def fallback_merge(results):
    """Merges without the model: first batch's commit, branch and title, all descriptions."""
    primary = results[0]
    descriptions = MERGE_SEPARATOR.join(result.description for result in results if result.description)
    return GenerationResult(primary.commit, primary.branch, descriptions or primary.description, primary.title)
