import re

from loguru import logger

from .constants import RESPONSE_TOKENS, SYSTEM_PROMPT_TOKENS

LATIN_CHARS = re.compile(r"""[a-zA-Z0-9\s.,;:!?'"()\[\]{}\-_+=<>/\\|`~@#$%^&*]""")
CJK_CHARS = re.compile(r"[\u4e00-\u9fff\u3400-\u4dbf\u3040-\u309f\u30a0-\u30ff\uac00-\ud7af]")


def ceil_div(numerator, denominator):
    return -(-numerator // denominator)


def estimate_tokens(text):
    """
    Approximates the number of tokens the model will see for `text`.

    Latin text runs at about 4 characters per token, CJK at 1.8 and anything
    else at 3. A 10% buffer covers special tokens and formatting.
    """
    if not text:
        return 0

    latin = len(text) - len(LATIN_CHARS.sub("", text))
    cjk = len(text) - len(CJK_CHARS.sub("", text))
    other = len(text) - latin - cjk

    tokens = ceil_div(latin, 4) + ceil_div(cjk * 5, 9) + ceil_div(other, 3)
    return tokens + ceil_div(tokens, 10)


def buffer_percentage(context_limit):
    if context_limit >= 128000:
        return 5
    if context_limit >= 32000:
        return 10
    if context_limit >= 8000:
        return 15
    return 20


def calculate_reserved_tokens(context_limit):
    """Tokens kept aside for the system prompt, the response and a safety buffer."""
    percentage = buffer_percentage(context_limit)
    buffer_tokens = ceil_div(context_limit * percentage, 100)
    reserved = SYSTEM_PROMPT_TOKENS + RESPONSE_TOKENS + buffer_tokens
    logger.debug(f"Reserved tokens: system={SYSTEM_PROMPT_TOKENS}, response={RESPONSE_TOKENS}, "
                 f"buffer={buffer_tokens} ({percentage}%), total={reserved}")
    return reserved


def available_tokens(context_limit):
    return context_limit - calculate_reserved_tokens(context_limit)
