import os
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv()


@dataclass
class Env:
    """Service settings, read once from the process environment and ``.env``."""

    # upstream endpoint
    openai_key: str = os.getenv("OPENAI_API_KEY", "")
    openai_base: str = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")
    timeout: float = float(os.getenv("TEXTLABEL_TIMEOUT", 60))
    # 1 means a failed call is not retried
    max_attempts: int = int(os.getenv("TEXTLABEL_MAX_ATTEMPTS", 1))

    # sampling; a low temperature keeps labels stable between runs
    model: str = os.getenv("TEXTLABEL_MODEL", "gpt-4-turbo-preview")
    temperature: float = float(os.getenv("TEXTLABEL_TEMPERATURE", 0.3))
    top_p: float = float(os.getenv("TEXTLABEL_TOP_P", 1.0))


ENV = Env()
