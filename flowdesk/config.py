from __future__ import annotations

import logging
import os
from configparser import ConfigParser
from pathlib import Path

import yaml
from pydantic import BaseModel

logger = logging.getLogger(__name__)


class GatewayConfig(BaseModel):
    base_url: str
    api_key: str | None = None
    timeout_ms: int | None = 30000

    @property
    def timeout_seconds(self) -> float | None:
        if self.timeout_ms is None:
            return None
        return self.timeout_ms / 1000


class AppConfig:
    def __init__(self, config_path: Path | None = None) -> None:
        parser = ConfigParser()
        package_root = Path(__file__).resolve().parent.parent
        parser.read(config_path or package_root / "config.ini")
        if not parser.sections():
            parser.read(Path("config.ini"))
        self._parser = parser
        self.examples_path = Path(__file__).resolve().parent / "examples.yaml"

    def gateway_config(self) -> GatewayConfig:
        api_key = os.environ.get("FLOWDESK_API_KEY") or self._get_str("gateway", "api_key", "")
        return GatewayConfig(
            base_url=os.environ.get("FLOWDESK_BASE_URL")
            or self._get_str("gateway", "base_url", "http://localhost:3000/api/v1"),
            api_key=api_key or None,
            timeout_ms=self._get_int("gateway", "timeout_ms", 30000),
        )

    def editor_defaults(self) -> dict[str, object]:
        return {
            "default_name": self._get_str("editor", "default_name", "New Workflow"),
            "viewport_width": self._get_float("editor", "viewport_width", 1200.0),
            "viewport_height": self._get_float("editor", "viewport_height", 800.0),
        }

    def diagram_defaults(self) -> dict[str, object]:
        return {"default_theme": self._get_str("diagram", "default_theme", "blue")}

    def logging_level(self) -> str:
        return self._get_str("logging", "level", "INFO").upper()

    def public_settings(self) -> dict[str, dict[str, object]]:
        gateway = self.gateway_config()
        return {
            "gateway": {
                "base_url": gateway.base_url,
                "has_api_key": gateway.api_key is not None,
                "timeout_ms": gateway.timeout_ms,
            },
            "editor": self.editor_defaults(),
            "diagram": self.diagram_defaults(),
            "logging": {"level": self.logging_level()},
        }

    def load_examples(self) -> list[dict[str, object]]:
        path = self.examples_path
        if not path.exists():
            return []
        try:
            raw = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (OSError, yaml.YAMLError):
            logger.warning("Could not read example workflows from %s", path, exc_info=True)
            return []
        if not isinstance(raw, dict):
            return []
        examples = raw.get("examples")
        if not isinstance(examples, list):
            return []
        return [item for item in examples if isinstance(item, dict)]

    def _get_str(self, section: str, key: str, fallback: str) -> str:
        return self._parser.get(section, key, fallback=fallback)

    def _get_int(self, section: str, key: str, fallback: int) -> int:
        return self._parser.getint(section, key, fallback=fallback)

    def _get_float(self, section: str, key: str, fallback: float) -> float:
        return self._parser.getfloat(section, key, fallback=fallback)


app_config = AppConfig()
