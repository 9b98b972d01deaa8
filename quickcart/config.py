"""Environment-driven settings for quickcart."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Mapping, Optional

from quickcart.browser.config import DEFAULT_DEBUG_PORT, DEFAULT_USER_DATA_DIR, BrowserConfig
from quickcart.exceptions import ConfigurationError


def _env_flag(env: Mapping[str, str], name: str, default: bool = False) -> bool:
    value = env.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class WorkflowTimings:
    """Settle delays, key delays and bounds used by the cart workflow (ms)."""

    type_delay_ms: int = 100
    blinkit_type_delay_ms: int = 300
    after_type_ms: int = 1000
    results_settle_ms: int = 5000
    cart_open_settle_ms: int = 2000
    remove_settle_ms: int = 1500
    add_settle_ms: int = 2000
    confirm_settle_ms: int = 2000
    verify_settle_ms: int = 3000
    input_visible_timeout_ms: int = 5000
    max_remove_iterations: int = 10


@dataclass
class Settings:
    """Container for environment-driven settings."""

    model_name: Optional[str] = None
    model_api_key: Optional[str] = None
    verbose: int = 0
    log_inference_to_file: bool = True
    inference_log_dir: str = "./inference_summary"
    user_data_dir: str = DEFAULT_USER_DATA_DIR
    debug_port: int = DEFAULT_DEBUG_PORT
    browser_path: Optional[str] = None
    screenshot_path: Optional[str] = None
    pause_between_steps: bool = False
    timings: WorkflowTimings = field(default_factory=WorkflowTimings)

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if env is None else env
        try:
            verbose = int(env.get("QUICKCART_VERBOSE", "0"))
            debug_port = int(env.get("QUICKCART_DEBUG_PORT", str(DEFAULT_DEBUG_PORT)))
        except ValueError as exc:
            raise ConfigurationError(f"Invalid numeric setting: {exc}") from exc

        return cls(
            model_name=env.get("QUICKCART_MODEL_NAME") or None,
            model_api_key=env.get("QUICKCART_MODEL_API_KEY") or None,
            verbose=verbose,
            log_inference_to_file=_env_flag(env, "QUICKCART_LOG_INFERENCE", default=True),
            inference_log_dir=env.get("QUICKCART_INFERENCE_DIR", "./inference_summary"),
            user_data_dir=env.get("QUICKCART_USER_DATA_DIR", DEFAULT_USER_DATA_DIR),
            debug_port=debug_port,
            browser_path=env.get("QUICKCART_BROWSER_PATH") or None,
            screenshot_path=env.get("QUICKCART_SCREENSHOT_PATH") or None,
            pause_between_steps=_env_flag(env, "QUICKCART_PAUSE"),
        )

    def require_model_credentials(self) -> tuple[str, str]:
        """Return ``(model_name, api_key)`` or fail when either is missing."""

        missing = [
            name
            for name, value in (
                ("QUICKCART_MODEL_NAME", self.model_name),
                ("QUICKCART_MODEL_API_KEY", self.model_api_key),
            )
            if not value
        ]
        if missing:
            raise ConfigurationError(
                f"Missing required settings: {', '.join(missing)}",
                data={"missing": missing},
            )
        return self.model_name, self.model_api_key  # type: ignore[return-value]

    def browser_config(self) -> BrowserConfig:
        return BrowserConfig(
            user_data_dir=self.user_data_dir,
            debug_port=self.debug_port,
            executable_path=self.browser_path,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""

    return Settings.from_env()
