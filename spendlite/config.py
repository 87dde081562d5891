"""
Configuration

Settings come from environment variables, optionally loaded from a .env file.
"""
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


# Load environment variables
load_dotenv()

# 0-based column mapping for the 10-column statement export
COL_DATE = 2
COL_AMOUNT = 5
COL_DESCRIPTION = 9
MIN_COLUMNS = 10

DEFAULT_PAGE_SIZE = 10
DEFAULT_LLM_MODEL = "claude-sonnet-4-20250514"
STORAGE_BACKENDS = ('json', 'postgres', 'memory')


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def _env_int(name: str, default: int) -> int:
    try:
        value = int(os.getenv(name, str(default)))
    except ValueError:
        return default
    return value if value > 0 else default


@dataclass
class Settings:
    """Runtime settings for the CLIs and the dashboard"""
    page_size: int = DEFAULT_PAGE_SIZE
    storage: str = 'json'
    state_path: Path = Path.home() / '.spendlite' / 'state.json'
    rules_file: Path = Path('rules.txt')
    enable_llm: bool = False
    anthropic_api_key: Optional[str] = None
    llm_model: str = DEFAULT_LLM_MODEL
    log_level: Optional[str] = None


def get_settings() -> Settings:
    """
    Build settings from the environment

    Recognised variables:
        SPENDLITE_PAGE_SIZE, SPENDLITE_STORAGE, SPENDLITE_STATE_PATH,
        SPENDLITE_RULES_FILE, SPENDLITE_ENABLE_LLM, ANTHROPIC_API_KEY,
        SPENDLITE_LLM_MODEL, SPENDLITE_LOG_LEVEL
    """
    storage = os.getenv('SPENDLITE_STORAGE', 'json').strip().lower()
    if storage not in STORAGE_BACKENDS:
        storage = 'json'

    state_path = os.getenv('SPENDLITE_STATE_PATH')

    return Settings(
        page_size=_env_int('SPENDLITE_PAGE_SIZE', DEFAULT_PAGE_SIZE),
        storage=storage,
        state_path=Path(state_path).expanduser() if state_path else Settings.state_path,
        rules_file=Path(os.getenv('SPENDLITE_RULES_FILE', 'rules.txt')),
        enable_llm=_env_bool('SPENDLITE_ENABLE_LLM'),
        anthropic_api_key=os.getenv('ANTHROPIC_API_KEY'),
        llm_model=os.getenv('SPENDLITE_LLM_MODEL', DEFAULT_LLM_MODEL),
        log_level=os.getenv('SPENDLITE_LOG_LEVEL'),
    )
