import json
import platform
import re

import openai
from loguru import logger

from . import __version__
from .constants import (LANGUAGE_NAMES, MAX_DISPLAYED_FILES, OUTPUT_TOOL, OUTPUT_TOOL_CHOICE, OUTPUT_TOOL_NAME,
                        PROBE_TIMEOUT, PROMPT_GENERATOR_SYSTEM, PROMPT_GENERATOR_USER, PROMPT_PARTIAL_CONTEXT,
                        PROMPT_PROBE_SYSTEM)
from .exceptions import EmptyResponseError, ResponseParseError
from .models import DiffChunk, GenerationResult, ModelOutput, TextOutput, ToolCallOutput

CODE_FENCE_START = re.compile(r"^```(?:json)?\s*")
CODE_FENCE_END = re.compile(r"\s*```$")
CONTEXT_ERROR_HINTS = ("context", "token", "length", "too long")


def normalize_language(language):
    if not language:
        return "en"
    if language.lower() not in LANGUAGE_NAMES:
        logger.warning(f"Unsupported language '{language}', falling back to English")
        return "en"
    return language.lower()


def language_name(language):
    return LANGUAGE_NAMES.get((language or "en").lower(), "English")


def describe_files(files):
    """Short description of which files a partial diff covers."""
    if len(files) > 1:
        shown = ", ".join(files[:MAX_DISPLAYED_FILES])
        more = " etc." if len(files) > MAX_DISPLAYED_FILES else ""
        return f"involving {len(files)} files: {shown}{more}"
    return f"file: {files[0] if files else 'unknown'}"


def build_system_prompt(language, context_info=None):
    context_section = PROMPT_PARTIAL_CONTEXT.format(context_info=context_info) if context_info else ""
    return PROMPT_GENERATOR_SYSTEM.format(language=language_name(language), context_section=context_section)


def build_user_prompt(context_info=None):
    if context_info:
        context_description = (f"This is a partial diff ({context_info}). "
                               "Focus your analysis on the changes visible in this specific portion.")
    else:
        context_description = "This is the complete git diff for analysis."
    return PROMPT_GENERATOR_USER.format(context_description=context_description)


def strip_code_fence(text):
    text = text.strip()
    if text.startswith("```"):
        text = CODE_FENCE_END.sub("", CODE_FENCE_START.sub("", text))
    return text


def parse_model_output(output, stage):
    """
    Turns either shape of model reply into a dict with the four result fields.
    Tool call arguments are plain JSON; text replies may be wrapped in a
    markdown code fence.
    """
    raw = output.arguments if isinstance(output, ToolCallOutput) else output.content
    try:
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            parsed = json.loads(strip_code_fence(raw))
    except (json.JSONDecodeError, TypeError) as e:
        logger.error(f"Failed to parse {stage} AI response: {raw}")
        raise ResponseParseError(stage, str(e)) from e

    if not isinstance(parsed, dict):
        raise ResponseParseError(stage, f"expected a JSON object, got {type(parsed).__name__}")
    for key in ("commit", "branch"):
        if not isinstance(parsed.get(key), str):
            raise ResponseParseError(stage, f"missing '{key}' field")

    for key in ("description", "title"):
        value = parsed.get(key) or ""
        parsed[key] = value.replace("\\n", "\n").strip() if isinstance(value, str) else str(value)

    logger.debug(f"Parsed {type(output).__name__} in {stage}")
    return parsed


class LLMClient:
    """Talks to an OpenAI compatible chat completion endpoint."""

    def __init__(self, api_key, base_url, model, temperature=0.1, client=None):
        self.model = model
        self.temperature = temperature
        self.base_url = base_url.rstrip("/")
        if self.base_url.endswith("/chat/completions"):
            self.base_url = self.base_url[:-len("/chat/completions")]

        self.client = client or openai.OpenAI(
            api_key=api_key,
            base_url=self.base_url,
            default_headers={
                "User-Agent": f"aiflow/{__version__} {platform.system().lower()}-{platform.machine()} "
                              f"Python/{platform.python_version()}"
            },
        )
        logger.info(f"Initialized OpenAI client for {self.model} at {self.base_url}")

    def complete(self, messages, use_tools=True) -> ModelOutput:
        """Sends a chat completion request and returns the raw model output."""
        request = {"model": self.model, "messages": messages, "temperature": self.temperature}
        if use_tools:
            request["tools"] = [OUTPUT_TOOL]
            request["tool_choice"] = OUTPUT_TOOL_CHOICE

        logger.debug(f"OpenAI request size: {sum(len(m['content']) for m in messages)} characters")
        try:
            response = self.client.chat.completions.create(**request)
        except openai.BadRequestError as e:
            # some OpenAI compatible servers reject function tools outright
            if not use_tools or "tool" not in str(e).lower():
                raise
            logger.warning(f"Model {self.model} does not accept function tools, retrying with a plain JSON reply: {e}")
            return self.complete(messages, use_tools=False)

        if not response.choices:
            raise EmptyResponseError("No valid response received from OpenAI API, response.choices is empty")
        choice = response.choices[0]
        message = choice.message
        if message is None:
            raise EmptyResponseError("No valid response received from OpenAI API, message is empty")

        logger.debug(f"OpenAI finish reason: {(choice.finish_reason or '<none>').upper()}")
        if response.usage is not None:
            logger.info(f"OpenAI usage: prompt={response.usage.prompt_tokens}, "
                        f"completion={response.usage.completion_tokens}, total={response.usage.total_tokens}")

        if message.tool_calls:
            if message.content and message.content.strip():
                logger.warning(f"Unexpected content next to the tool call: {message.content}")
            tool_call = message.tool_calls[0]
            if tool_call.function.name == OUTPUT_TOOL_NAME:
                logger.debug(f"Tool call arguments: {tool_call.function.arguments}")
                return ToolCallOutput(tool_call.function.arguments)
            logger.warning(f"Unsupported tool call {tool_call.function.name}: {tool_call.function.arguments}")

        if message.content:
            logger.debug(f"Content response: {message.content}")
            return TextOutput(message.content)

        raise EmptyResponseError("No valid response received from OpenAI API")

    def generate(self, diff, language):
        """
        Generates commit information for either a whole diff (a string) or a
        single batch (a DiffChunk). Errors propagate to the caller.
        """
        if isinstance(diff, DiffChunk):
            context_info, content, stage = describe_files(diff.files), diff.content, "batch processing"
            logger.debug(f"Generating commit info for a batch with {len(diff.files)} files")
        else:
            context_info, content, stage = None, diff, "direct processing"

        messages = [
            {"role": "system", "content": build_system_prompt(language, context_info)},
            {"role": "user", "content": build_user_prompt(context_info)},
            {"role": "user", "content": content},
        ]
        parsed = parse_model_output(self.complete(messages), stage)

        title = parsed["title"]
        if not title and context_info is None:
            title = re.sub(r"[\r\n]", "", parsed["commit"]).strip()[:50]
        return GenerationResult(parsed["commit"], parsed["branch"], parsed["description"], title)

    def probe_context_limit(self, limit):
        """
        Sends a request padded to 80% of `limit` tokens. Returns False when
        the model rejects it for being too long, and raises for other errors.
        """
        padding = "x" * (int(limit * 0.8) * 4)
        try:
            response = self.client.with_options(timeout=PROBE_TIMEOUT, max_retries=0).chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": PROMPT_PROBE_SYSTEM},
                    {"role": "user", "content": f"Test message: {padding}"},
                ],
                max_tokens=10,
                temperature=0,
            )
        except openai.APIStatusError as e:
            if any(hint in str(e).lower() for hint in CONTEXT_ERROR_HINTS):
                logger.debug(f"Context limit {limit} exceeded for model {self.model}")
                return False
            raise
        return bool(response.choices)
