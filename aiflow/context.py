import openai
from loguru import logger

from .constants import DEFAULT_CONTEXT_LIMIT, FALLBACK_CONTEXT_LIMIT, MODEL_PATTERNS, MODEL_TOKEN_LIMITS, PROBE_CONTEXT_LIMITS
from .exceptions import AIFlowError, ContextLimitError


def lookup_context_limit(model):
    """
    Returns the context window of `model` from the exact-name table, then the
    family patterns, then the conservative default.
    """
    if not model or not model.strip():
        raise ContextLimitError("Model name is empty")

    limit = MODEL_TOKEN_LIMITS.get(model.lower())
    if limit:
        return limit

    for pattern, limit, description in MODEL_PATTERNS:
        if pattern.search(model):
            logger.debug(f"Matched {model} with pattern for {description}, limit: {limit}")
            return limit

    logger.debug(f"No specific limit found for model {model}, using default {DEFAULT_CONTEXT_LIMIT}")
    return DEFAULT_CONTEXT_LIMIT


class ContextLimitResolver:
    """
    Resolves and remembers the context window of each model.

    `cache` is any mutable mapping and is shared with whoever passes it in.
    `prober` is called with a candidate limit and returns whether the model
    accepted a request of that size; it is only used when the lookup fails.
    """

    def __init__(self, cache=None, prober=None, probe_enabled=True):
        self.cache = {} if cache is None else cache
        self.prober = prober
        self.probe_enabled = probe_enabled

    def lookup(self, model):
        return lookup_context_limit(model)

    def resolve(self, model):
        if model in self.cache:
            return self.cache[model]

        try:
            limit = self.lookup(model)
            logger.debug(f"Using context limit for model {model}: {limit} tokens")
        except AIFlowError as e:
            logger.warning(f"Failed to detect context limit for model {model}: {e}")
            limit = self.reverse_probe(model)

        self.cache[model] = limit
        return limit

    def reverse_probe(self, model):
        if not self.probe_enabled or self.prober is None:
            logger.warning(f"Context limit probing is disabled, using fallback limit: {FALLBACK_CONTEXT_LIMIT}")
            return FALLBACK_CONTEXT_LIMIT

        for limit in PROBE_CONTEXT_LIMITS:
            try:
                if self.prober(limit):
                    logger.info(f"Reverse detection successful: model {model} supports {limit} tokens")
                    return limit
            except (openai.OpenAIError, AIFlowError) as e:
                logger.debug(f"Context limit test failed for {limit} tokens: {e}")

        logger.warning(f"Reverse detection failed, using fallback limit: {FALLBACK_CONTEXT_LIMIT}")
        return FALLBACK_CONTEXT_LIMIT
