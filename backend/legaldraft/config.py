import os
from dataclasses import dataclass
from typing import List, Optional
import pathlib
import logging
import yaml

logger = logging.getLogger(__name__)

BACKEND_ROOT = pathlib.Path(__file__).resolve().parents[1]


@dataclass(frozen=True)
class Settings:
    openai_api_key: Optional[str]
    openai_model: str
    openai_max_tokens: int
    openai_temperature: float
    cors_allow_origins: List[str]
    history_commit_threshold: int
    templates_dir: pathlib.Path
    log_level: str
    prompts: dict


def load_settings() -> Settings:
    cors_env = os.getenv("CORS_ALLOW_ORIGINS", "*")
    cors = [o.strip() for o in cors_env.split(",") if o.strip()] or ["*"]
    model = os.getenv("OPENAI_MODEL", "gpt-4o")
    templates_env = os.getenv("TEMPLATES_DIR")
    templates_dir = pathlib.Path(templates_env) if templates_env else BACKEND_ROOT / "document_templates"
    prompts = _load_prompts()
    return Settings(
        openai_api_key=os.getenv("OPENAI_API_KEY"),
        openai_model=model,
        openai_max_tokens=_env_int("OPENAI_MAX_TOKENS", 8000),
        openai_temperature=_env_float("OPENAI_TEMPERATURE", 0.2),
        cors_allow_origins=cors,
        history_commit_threshold=_env_int("HISTORY_COMMIT_THRESHOLD", DEFAULT_HISTORY_COMMIT_THRESHOLD),
        templates_dir=templates_dir,
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        prompts=prompts,
    )


def _env_int(key: str, default: int) -> int:
    raw = os.getenv(key)
    try:
        return int(raw) if raw else default
    except ValueError:
        logger.warning(f"Ignoring non-integer {key}={raw!r}, using {default}")
        return default


def _env_float(key: str, default: float) -> float:
    raw = os.getenv(key)
    try:
        return float(raw) if raw else default
    except ValueError:
        logger.warning(f"Ignoring non-numeric {key}={raw!r}, using {default}")
        return default


def _load_prompts() -> dict:
    # prompts.yml lives in the backend root (parent of legaldraft/)
    prompts_path = BACKEND_ROOT / "prompts.yml"
    try:
        with open(prompts_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as exc:
        logger.warning(f"Could not load {prompts_path}: {exc}; using built-in prompts")
        return {}
    if not isinstance(data, dict):
        return {}
    return data


def prompt_text(settings: Settings, section: str, key: str, default: str) -> str:
    """Look up prompts.yml[section][key], falling back to the built-in text."""
    value = (settings.prompts or {}).get(section, {}).get(key)
    return value or default


# Direct edits smaller than this many characters are coalesced into the
# previous undo step.
DEFAULT_HISTORY_COMMIT_THRESHOLD = 40

# Built-in prompts used when prompts.yml does not override them
DEFAULT_SYSTEM_PROMPT = (
    "You are an expert legal drafter for GCC jurisdictions (UAE, Saudi Arabia, Qatar, "
    "Kuwait, Bahrain, Oman). Write precise, enforceable legal documents. Return ONLY the "
    "document text, with no commentary and no code fences."
)
DEFAULT_EDITING_CONTEXT = (
    "You are editing an existing legal document. The current document is provided below.\n"
    "Apply the user's request and return the COMPLETE updated document, not a diff or an excerpt.\n"
    "Return ONLY the document text (no explanations, no code fences)."
)
DEFAULT_CUSTOM_DRAFTING_PROMPT = (
    "You help a user describe a custom legal document before it is drafted. Ask short "
    "clarifying questions about parties, obligations, amounts, dates and governing law. "
    "Do not draft the full document yet."
)
