import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()


def env_str(name: str, default: str | None = None) -> str:
    val = os.getenv(name)
    return val if val is not None else (default or "")


def env_float(name: str, default: float) -> float:
    val = os.getenv(name)
    if not val:
        return default
    try:
        return float(val)
    except ValueError:
        return default


def env_int(name: str, default: int) -> int:
    return int(env_float(name, float(default)))


GITHUB_API_BASE: str = env_str("GITHUB_API_BASE", "https://api.github.com").rstrip("/")
# Server-held credential; when both are set the app signs in with them on startup
GITHUB_TOKEN: str = env_str("GITHUB_TOKEN", "")
GITHUB_REPO: str = env_str("GITHUB_REPO", "")
GITHUB_BRANCH: str = env_str("GITHUB_BRANCH", "")

# Proxy mode: every contents call is forwarded by PROXY_URL, which holds the real token
PROXY_URL: str = env_str("PROXY_URL", "")
PROXY_LOGIN_URL: str = env_str("PROXY_LOGIN_URL", "")

HTTP_TIMEOUT_S: float = env_float("HTTP_TIMEOUT_S", 30.0)
PAGE_SIZE: int = max(1, env_int("PAGE_SIZE", 15))
NOTIFY_TTL_S: float = env_float("NOTIFY_TTL_S", 3.0)
SESSION_TTL_S: int = env_int("SESSION_TTL_S", 8 * 3600)

CREDENTIAL_PATH: Path = Path(
    env_str("CREDENTIAL_PATH", str(Path.home() / ".repogallery" / "credential.json"))
).expanduser()

CORS_ORIGINS: list[str] = [
    o.strip()
    for o in env_str(
        "CORS_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173"
    ).split(",")
    if o.strip()
]

LOG_LEVEL: str = env_str("LOG_LEVEL", "info")
