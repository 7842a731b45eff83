from __future__ import annotations
import json
import logging
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from .prompt_builder import DEFAULT_MAX_CONTENT_CHARS
logger = logging.getLogger(__name__)
DEFAULT_STORE = Path.home() / ".eps_agent" / "settings.json"
@dataclass
class AgentSettings:
    base_url: str = "http://localhost:11434"
    chat_path: str = "/api/chat"
    model: str = "gemma3:1b"
    max_content_chars: int = DEFAULT_MAX_CONTENT_CHARS
    timeout: float | None = None
def load_settings(store: Path = DEFAULT_STORE) -> AgentSettings:
    if not store.exists():
        return AgentSettings()
    try:
        data = json.loads(store.read_text(encoding="utf-8"))
        known = {f.name for f in fields(AgentSettings)}
        return AgentSettings(**{k: v for k, v in data.items() if k in known})
    except Exception as exc:
        logger.warning("Ignoring unreadable settings file %s: %s", store, exc)
        return AgentSettings()
def save_settings(settings: AgentSettings, store: Path = DEFAULT_STORE) -> None:
    store.parent.mkdir(parents=True, exist_ok=True)
    store.write_text(json.dumps(asdict(settings), indent=2), encoding="utf-8")
