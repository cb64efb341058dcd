import os
from dataclasses import dataclass, fields

from loguru import logger

CONFIG_DIR = os.path.expanduser("~/.config/aiflow")

DEFAULT_BASE_URL = "https://api.openai.com/v1"
DEFAULT_MODEL = "gpt-4o-mini"

# environment variable -> settings field, later names win
ENVIRONMENT = {
    "OPENAI_API_KEY": "api_key",
    "OPENAI_KEY": "api_key",
    "OPENAI_BASE_URL": "base_url",
    "OPENAI_MODEL": "model",
    "AIFLOW_LANGUAGE": "language",
    "AIFLOW_PROBE_CONTEXT": "probe_context_limit",
}

TRUTHY = ("1", "true", "yes", "on")


@dataclass
class Settings:
    api_key: str = ""
    base_url: str = DEFAULT_BASE_URL
    model: str = DEFAULT_MODEL
    language: str = "en"
    temperature: float = 0.1
    probe_context_limit: bool = True
    context_size: int = 1


def setup_api_key(api_type="OpenAI", config_dir=CONFIG_DIR):
    api_key = input(f"Enter your {api_type} API key: ")
    os.makedirs(config_dir, exist_ok=True)
    with open(os.path.join(config_dir, f"{api_type.lower()}_api_key"), "w", encoding='utf-8', newline=os.linesep) as f:
        f.write(api_key)
    logger.success(f"{api_type} API key saved.")


def load_api_key(api_type="OpenAI", config_dir=CONFIG_DIR):
    try:
        with open(os.path.join(config_dir, f"{api_type.lower()}_api_key"), "r", encoding='utf-8') as f:
            api_key = f.read().strip()
        return api_key
    except FileNotFoundError:
        return None


def load_settings(args=None, environ=None, config_dir=CONFIG_DIR):
    """
    Builds the settings from, lowest priority first: defaults, the stored API
    key, environment variables and finally command line arguments.
    """
    environ = os.environ if environ is None else environ
    settings = Settings()

    stored_key = load_api_key(config_dir=config_dir)
    if stored_key:
        settings.api_key = stored_key

    for name, field_name in ENVIRONMENT.items():
        value = environ.get(name)
        if not value:
            continue
        if field_name == "probe_context_limit":
            value = value.strip().lower() in TRUTHY
        setattr(settings, field_name, value)

    if args is not None:
        for field in fields(Settings):
            value = getattr(args, field.name, None)
            if value is not None:
                setattr(settings, field.name, value)

    logger.debug(f"Using model {settings.model} at {settings.base_url}")
    return settings
