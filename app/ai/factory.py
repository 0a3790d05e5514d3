from app.ai.config import load_ai_config
from app.ai.types import TextGenerator

from app.ai.providers.openai_provider import OpenAIProvider


def get_ai_client() -> TextGenerator:
    cfg = load_ai_config()

    # Any OpenAI-compatible gateway is reachable through OPENAI_BASE_URL.
    if cfg.provider == "openai":
        return OpenAIProvider.from_config(cfg)

    raise ValueError(f"Unsupported AI_PROVIDER='{cfg.provider}'")
