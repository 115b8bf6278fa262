import copy
import json
from pathlib import Path
from typing import Dict, Any

from jarloc.logger import get_logger

logger = get_logger(__name__)

# Translation configuration constants
DEFAULT_CHUNK_SIZE = 25  # Maximum keys/elements per chunk
LARGE_FILE_THRESHOLD = 15000  # Serialized characters before a payload is split
DEFAULT_SYSTEM_MESSAGE = "You are a helpful assistant that translates JSON files. You output ONLY valid JSON."

# Provider configuration constants
BUILTIN_PROVIDERS = ["gemini", "groq", "deepseek", "openrouter", "local"]
OPENAI_COMPATIBLE_PROVIDERS = ["groq", "deepseek", "openrouter"]

BUILTIN_PROVIDER_DISPLAY_NAMES = {
    "gemini": "Google Gemini",
    "groq": "Groq",
    "deepseek": "DeepSeek",
    "openrouter": "OpenRouter",
    "local": "Local LLM",
}

# Get base directory (project root)
BASE_DIR = Path(__file__).parent.parent
CONFIG_DIR = BASE_DIR / "config"
CONFIG_FILE = CONFIG_DIR / "config.json"

# Default prompts
DEFAULT_PROMPTS = {
    "json_translation_prompt": {
        "version": "1.0",
        "description": "Prompt used for every chunk sent to a provider",
        "prompt": """
TASK: Translate the values of this JSON to target language code: "{target_language_code}" ({target_language_name}).
CRITICAL RULES:
1. Output MUST be valid, parseable JSON. No markdown formatting.
2. DO NOT translate keys.
3. Preserve all formatting codes (§, %, <br>).

INPUT JSON:
{payload}
"""
    }
}

# Default configuration templates
DEFAULT_CONFIG = {
    "ai_provider": "gemini",
    "target_language": "es",
    "gemini": {
        "api_key": "",
        "api_url": "https://generativelanguage.googleapis.com/v1beta",
        "default_model": "gemini-2.0-flash",
        "timeout": 120,
    },
    "groq": {
        "api_key": "",
        "api_url": "https://api.groq.com/openai/v1",
        "default_model": "llama3-70b-8192",
        "timeout": 120,
    },
    "deepseek": {
        "api_key": "",
        "api_url": "https://api.deepseek.com",
        "default_model": "deepseek-chat",
        "timeout": 120,
    },
    "openrouter": {
        "api_key": "",
        "api_url": "https://openrouter.ai/api/v1",
        "default_model": "mistralai/mistral-7b-instruct:free",
        "timeout": 120,
        "referer": "https://jarloc.app",
        "title": "JarLoc",
    },
    "local": {
        "api_url": "http://localhost:11434/v1",
        "default_model": "",
        "timeout": 300,
    },
    "translation": {
        "chunk_size": DEFAULT_CHUNK_SIZE,
        "large_file_threshold": LARGE_FILE_THRESHOLD,
        "max_retries": 3,
        "retry_delay": 2.0,  # seconds, multiplied by the attempt number
        "pause_poll_interval": 0.5,
        "courtesy_delay": 1.0,
        "temperature": 0.1,
        "pack_format": 15,
    },
    "log_mode": "off"
}


def ensure_config_directory():
    """Ensure the config directory exists."""
    CONFIG_DIR.mkdir(exist_ok=True)
    logger.debug(f"Config directory ensured: {CONFIG_DIR}")


def create_default_config():
    """Create the default config.json file."""
    ensure_config_directory()
    with open(CONFIG_FILE, 'w', encoding='utf-8') as f:
        json.dump(DEFAULT_CONFIG, f, indent=4, ensure_ascii=False)
    logger.info(f"Created default config file: {CONFIG_FILE}")


def initialize_app():
    """
    Initialize the application.
    Creates the default configuration file on first run.
    """
    logger.info("Initializing application...")
    if not CONFIG_FILE.exists():
        create_default_config()
    else:
        logger.debug("Config file already exists")
    logger.info("Application initialization complete")


def _merge_defaults(defaults: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively lay `overrides` over a copy of `defaults`."""
    merged = copy.deepcopy(defaults)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge_defaults(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config() -> Dict[str, Any]:
    """Load the configuration file merged over the defaults."""
    if not CONFIG_FILE.exists():
        return copy.deepcopy(DEFAULT_CONFIG)
    try:
        with open(CONFIG_FILE, 'r', encoding='utf-8') as f:
            stored = json.load(f)
        if not isinstance(stored, dict):
            raise ValueError("config root must be an object")
        logger.debug("Configuration loaded from file")
        return _merge_defaults(DEFAULT_CONFIG, stored)
    except (json.JSONDecodeError, ValueError) as e:
        logger.error(f"Failed to parse config file: {e}")
        logger.warning("Using default configuration")
        return copy.deepcopy(DEFAULT_CONFIG)
    except OSError as e:
        logger.error(f"Failed to read config file: {e}")
        logger.warning("Using default configuration")
        return copy.deepcopy(DEFAULT_CONFIG)


def save_config(config: Dict[str, Any]):
    """Save the configuration file."""
    try:
        ensure_config_directory()
        with open(CONFIG_FILE, 'w', encoding='utf-8') as f:
            json.dump(config, f, indent=4, ensure_ascii=False)
        logger.info("Configuration saved")
    except OSError as e:
        logger.error(f"Failed to save config: {e}")
        raise


def get_translation_settings(config: Dict[str, Any] = None) -> Dict[str, Any]:
    """Return the translation section with defaults filled in."""
    config = config if config is not None else load_config()
    return _merge_defaults(DEFAULT_CONFIG["translation"], config.get("translation", {}))


def load_prompts() -> Dict[str, Any]:
    """Prompts are hardcoded and never written to the config file."""
    return copy.deepcopy(DEFAULT_PROMPTS)


def get_prompt(prompt_name: str = "json_translation_prompt") -> Dict[str, Any]:
    """Get a specific prompt by name."""
    prompts = load_prompts()
    return prompts.get(prompt_name, DEFAULT_PROMPTS["json_translation_prompt"])
