import re

# Models and their respective context windows
MODEL_TOKEN_LIMITS = {
    # OpenAI
    "gpt-3.5-turbo": 4096,
    "gpt-3.5-turbo-16k": 16384,
    "gpt-3.5-turbo-0301": 4096,
    "gpt-3.5-turbo-0613": 4096,
    "gpt-3.5-turbo-1106": 16384,
    "gpt-3.5-turbo-0125": 16384,
    "gpt-4": 8192,
    "gpt-4-0314": 8192,
    "gpt-4-0613": 8192,
    "gpt-4-32k": 32768,
    "gpt-4-32k-0314": 32768,
    "gpt-4-32k-0613": 32768,
    "gpt-4-turbo": 128000,
    "gpt-4-turbo-preview": 128000,
    "gpt-4-1106-preview": 128000,
    "gpt-4-0125-preview": 128000,
    "gpt-4o": 128000,
    "gpt-4o-2024-05-13": 128000,
    "gpt-4o-2024-08-06": 128000,
    "gpt-4o-mini": 128000,
    "gpt-4o-mini-2024-07-18": 128000,

    # DeepSeek
    "deepseek-coder": 16384,
    "deepseek-chat": 32768,
    "deepseek-v2": 128000,
    "deepseek-v2.5": 128000,
    "deepseek-v3": 128000,
    "deepseek-v3.1": 128000,
    "deepseekv3": 128000,
    "deepseekv31": 128000,
    "deepseek-coder-v2": 128000,

    # Qwen
    "qwen-turbo": 8192,
    "qwen-plus": 32768,
    "qwen-max": 32768,
    "qwen2": 32768,
    "qwen2.5": 32768,
    "qwen3": 128000,
    "qwen3-coder": 128000,
    "qwen-coder-plus": 128000,
    "qwen-coder-turbo": 128000,

    # Kimi (Moonshot)
    "moonshot-v1-8k": 8192,
    "moonshot-v1-32k": 32768,
    "moonshot-v1-128k": 128000,
    "kimi-chat": 128000,

    # Claude
    "claude-3-haiku": 200000,
    "claude-3-sonnet": 200000,
    "claude-3-opus": 200000,
    "claude-3-5-sonnet": 200000,
    "claude-3-5-haiku": 200000,

    # Gemini
    "gemini-pro": 32768,
    "gemini-1.5-pro": 1048576,
    "gemini-1.5-flash": 1048576,
    "gemini-ultra": 32768,

    # Yi
    "yi-34b-chat": 4096,
    "yi-6b-chat": 4096,
    "yi-large": 32768,
    "yi-medium": 16384,

    # Baichuan
    "baichuan2-turbo": 32768,
    "baichuan2-turbo-192k": 192000,

    # GLM
    "glm-4": 128000,
    "glm-4v": 128000,
    "glm-3-turbo": 128000,
    "chatglm3-6b": 8192,

    # Self-hosted (ollama names)
    "llama2": 4096,
    "llama2:70b": 4096,
    "llama3": 8192,
    "llama3:70b": 8192,
    "llama3.1": 128000,
    "llama3.1:70b": 128000,
    "llama3.1:405b": 128000,
    "codellama": 16384,
    "codellama:34b": 16384,
    "mistral": 32768,
    "mixtral": 32768,
    "phi3": 128000,
    "gemma": 8192,
    "gemma2": 8192,
    "qwen2.5:72b": 32768,
}

# Model families, tried top to bottom, first match wins.
# The (^|/|:) anchor lets provider prefixes like "qwen/" or "ollama:" through.
MODEL_PATTERNS = [(re.compile(pattern, re.IGNORECASE), limit, description) for pattern, limit, description in [
    (r"(^|/|:)(x)?deepseek[-_]?v?3\.?1", 32000, "DeepSeek V3.1 variants"),
    (r"(^|/|:)(x)?deepseek[-_]?v?3", 32000, "DeepSeek V3 variants"),
    (r"(^|/|:)(x)?deepseek[-_]?v?2\.?5?", 8000, "DeepSeek V2/V2.5 variants"),
    (r"(^|/|:)(x)?deepseek[-_]?coder", 32000, "DeepSeek Coder variants"),
    (r"(^|/|:)(x)?deepseek", 8000, "Other DeepSeek variants"),

    (r"(^|/|:)qwen[-_]?3[-_]?coder", 128000, "Qwen3 Coder variants"),
    (r"(^|/|:)qwen[-_]?3", 128000, "Qwen3 variants"),
    (r"(^|/|:)qwen[-_]?2\.?5", 32768, "Qwen2.5 variants"),
    (r"(^|/|:)qwen[-_]?2", 32768, "Qwen2 variants"),
    (r"(^|/|:)qwen[-_]?(coder|plus)", 128000, "Qwen Coder/Plus variants"),
    (r"(^|/|:)qwen[-_]?max", 32768, "Qwen Max variants"),
    (r"(^|/|:)qwen", 8192, "Other Qwen variants"),

    (r"(^|/|:)gpt[-_]?4o[-_]?mini", 128000, "GPT-4o mini variants"),
    (r"(^|/|:)gpt[-_]?4o", 128000, "GPT-4o variants"),
    (r"(^|/|:)gpt[-_]?4[-_]?turbo", 128000, "GPT-4 turbo variants"),
    (r"(^|/|:)gpt[-_]?4[-_]?32k", 32768, "GPT-4 32K variants"),
    (r"(^|/|:)gpt[-_]?4", 8192, "GPT-4 variants"),
    (r"(^|/|:)gpt[-_]?3\.?5[-_]?turbo[-_]?16k", 16384, "GPT-3.5 turbo 16K variants"),
    (r"(^|/|:)gpt[-_]?3\.?5", 4096, "GPT-3.5 variants"),

    (r"(^|/|:)claude[-_]?3[-_]?5", 200000, "Claude 3.5 variants"),
    (r"(^|/|:)claude[-_]?3", 200000, "Claude 3 variants"),

    (r"(^|/|:)gemini[-_]?1\.?5", 1048576, "Gemini 1.5 variants"),
    (r"(^|/|:)gemini", 32768, "Other Gemini variants"),

    (r"(^|/|:)(kimi|moonshot)[-_]?.*128k", 128000, "Kimi/Moonshot 128K variants"),
    (r"(^|/|:)(kimi|moonshot)[-_]?.*32k", 32768, "Kimi/Moonshot 32K variants"),
    (r"(^|/|:)(kimi|moonshot)", 128000, "Other Kimi/Moonshot variants"),

    (r"(^|/|:)llama[-_]?3\.?1", 128000, "LLaMA 3.1 variants"),
    (r"(^|/|:)llama[-_]?3", 8192, "LLaMA 3 variants"),
    (r"(^|/|:)llama[-_]?2", 4096, "LLaMA 2 variants"),
    (r"(^|/|:)codellama", 16384, "CodeLlama variants"),

    (r"(^|/|:)mixtral", 32768, "Mixtral variants"),
    (r"(^|/|:)mistral", 32768, "Mistral variants"),
    (r"(^|/|:)phi[-_]?3", 128000, "Phi-3 variants"),
    (r"(^|/|:)yi[-_]?large", 32768, "Yi Large variants"),
    (r"(^|/|:)yi", 4096, "Other Yi variants"),
    (r"(^|/|:)glm[-_]?4", 128000, "GLM-4 variants"),
    (r"(^|/|:)chatglm", 8192, "ChatGLM variants"),
]]

DEFAULT_CONTEXT_LIMIT = 4096
FALLBACK_CONTEXT_LIMIT = 8192
PROBE_CONTEXT_LIMITS = [1024 * k for k in (1024, 512, 256, 128, 64, 32, 16, 8, 4)]
PROBE_TIMEOUT = 2.0

SYSTEM_PROMPT_TOKENS = 800
RESPONSE_TOKENS = 1000

MAX_DIFF_SIZE = 10 * 1024 * 1024
MAX_DISPLAYED_FILES = 3
MERGE_SEPARATOR = "\n\n---\n\n"

LANGUAGE_NAMES = {
    "en": "English",
    "zh-cn": "Chinese (Simplified)",
    "zh-tw": "Chinese (Traditional)",
    "zhcn": "Chinese (Simplified)",
    "zhtw": "Chinese (Traditional)",
    "ja": "Japanese",
    "ko": "Korean",
    "fr": "French",
    "de": "German",
    "es": "Spanish",
    "ru": "Russian",
    "pt": "Portuguese",
    "it": "Italian",
}

OUTPUT_TOOL_NAME = "output_with_json"

OUTPUT_TOOL = {
    "type": "function",
    "function": {
        "name": OUTPUT_TOOL_NAME,
        "description": "Output the analyzed Git commit information in structured JSON format",
        "parameters": {
            "type": "object",
            "properties": {
                "commit": {
                    "type": "string", "description": "The generated commit message"
                },
                "branch": {
                    "type": "string", "description": "The generated branch name"
                },
                "description": {
                    "type": "string", "description": "The generated merge request description"
                },
                "title": {
                    "type": "string", "description": "The generated merge request title"
                },
            },
            "required": ["commit", "branch", "description", "title"],
            "additionalProperties": False,
        },
    },
}

OUTPUT_TOOL_CHOICE = {"type": "function", "function": {"name": OUTPUT_TOOL_NAME}}

PROMPT_PARTIAL_CONTEXT = "CONTEXT: This is a partial diff ({context_info}). Analyze ONLY the changes visible in this specific portion.\n\n"

PROMPT_GENERATOR_SYSTEM = """You are an expert Git commit analyzer. Your task is to analyze the provided git diff and generate accurate, professional commit information.

LANGUAGE REQUIREMENT: Generate all content in `{language}`. For English, use standard technical terminology. For Chinese, use professional technical Chinese. For other languages, use appropriate professional terminology.

{context_section}
## Analysis Instructions:

1.  Carefully examine the git diff to identify:
    *   Exact files that were modified, added, or deleted
    *   Specific code changes (functions, variables, imports, etc.)
    *   The purpose and scope of the changes
    *   Whether changes are features, fixes, documentation, styling, refactoring, tests, or maintenance

2.  Base your analysis ONLY on what you can see in the diff:
    *   Do not invent or assume functionality not shown
    *   Use precise technical terminology
    *   Ensure the commit type matches the actual changes
    *   Keep descriptions factual and specific

## Output Requirements:

1.  **COMMIT MESSAGE** (generate in {language}):
    *   MUST follow conventional commits: type(scope): description
    *   Types: feat, fix, docs, style, refactor, test, chore
    *   Scope: optional, use the file or module name if clear
    *   Description: imperative mood, under 72 characters
    *   Examples: "feat(auth): add user login validation", "fix(api): resolve null pointer exception"

2.  **BRANCH NAME** (ALWAYS English, generate in English):
    *   EXACT format: type/short-description
    *   Type: feat, fix, docs, style, refactor, test, chore
    *   Description: 2-4 words, kebab-case, descriptive
    *   Examples: feat/user-auth, fix/login-bug, docs/api-guide
    *   NO deviations from this format

3.  **MR DESCRIPTION** (generate in {language}):
    Structure it with these sections:
    ## What Changed
    - List the specific changes made (based on the diff)

    ## Why
    - Explain the reason or purpose of these changes

    ## How to Test
    - Provide relevant testing instructions

    Use markdown formatting, be specific and factual.
    *   The section headings ('What Changed', 'Why', 'How to Test') MUST also be translated to {language}, not just the content under them.
    *   Write the description as proper Markdown with natural line breaks. Do not escape newlines (\\n).
    *   Example for Chinese (Simplified): '## 变更内容' instead of '## What Changed', '## 变更原因' instead of '## Why', '## 测试方法' instead of '## How to Test'.

4.  **MR TITLE** (generate in {language}):
    *   Concise, descriptive title summarizing the change
    *   Use appropriate prefixes for maintenance changes

## Required Output Structure:

You MUST call the `output_with_json` function tool with these exact parameters:
- commit: your generated commit message (string)
- branch: your generated branch name (string)
- description: your generated MR description (string)
- title: your generated MR title (string)

Do NOT provide JSON in text format when the function tool is available, and do NOT include any other text or explanations.

If function tools are not supported, return ONLY a valid JSON object with EXACTLY these 4 fields and nothing else:
{{
  "commit": "<COMMIT MESSAGE>",
  "branch": "<BRANCH NAME>",
  "description": "<MR DESCRIPTION>",
  "title": "<MR TITLE>"
}}"""

PROMPT_GENERATOR_USER = """{context_description}

TASK: Analyze the git diff provided in the next message and generate comprehensive commit information.

ANALYSIS REQUIREMENTS:
- Examine all file changes, additions, and deletions
- Identify the primary purpose and scope of the changes
- Determine the appropriate conventional commit type
- Consider the impact and context of the modifications

OUTPUT REQUIREMENTS:
- Use the 'output_with_json' function to provide structured results
- Follow the language requirements given in the system prompt
- Generate professional, accurate and concise information

The raw git diff output will be provided in the next user message."""

PROMPT_MERGER_SYSTEM = """You are a Git commit message expert. I have multiple commit results for different file sections that need to be merged into a unified, global commit message, branch name, MR description and MR title.

Merging Rules:
1. Commit message: select the most important change type and generate a unified conventional commit message
2. Branch name: choose the most significant change type and generate a comprehensive branch name (always in English)
3. MR description: merge all partial descriptions into one comprehensive MR description
4. MR title: merge all partial titles into one comprehensive MR title

Generate content in {language} (except the branch name, which must be in English).

IMPORTANT: You MUST use the 'output_with_json' function tool to provide your merged results. Call the function with the four required parameters:
- commit: your merged commit message
- branch: your merged branch name (in English)
- description: your merged MR description
- title: your merged MR title

Do NOT provide JSON in text format - use the function tool only."""

PROMPT_MERGER_USER = """Please merge the following {count} partial results into a global commit message, branch name, MR description and MR title using the 'output_with_json' function:

{summaries}"""

PROMPT_MERGER_BATCH = """# Batch {index}:
- Commit: `{commit}`
- Branch: `{branch}`
- MR Description: ```markdown
{description}
```
- MR Title: `{title}`"""

PROMPT_PROBE_SYSTEM = "You are a helpful assistant. Respond with 'OK'."
