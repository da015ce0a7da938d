# SPDX-FileCopyrightText: 2025 Lucas S
#
# SPDX-License-Identifier: GPL-3.0-or-later

import os
from dataclasses import dataclass
from typing import Optional

DEBUG_ENV = "HTTPAGENT_DEBUG"
TIMEOUT_ENV = "HTTPAGENT_TIMEOUT"
FOLLOW_REDIRECTS_ENV = "HTTPAGENT_FOLLOW_REDIRECTS"
USER_AGENT_ENV = "HTTPAGENT_USER_AGENT"

DEFAULT_TIMEOUT = 30.0


def get_env_bool(var_name: str, default: bool) -> bool:
    value = os.getenv(var_name)
    if value is None:
        return default
    value_lower = value.strip().lower()
    if value_lower in ("1", "true", "yes", "on"):
        return True
    elif value_lower in ("0", "false", "no", "off"):
        return False
    return default


def get_env_float(var_name: str, default: float) -> float:
    value = os.getenv(var_name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def get_env_str(var_name: str, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(var_name)
    if value is None or not value.strip():
        return default
    return value.strip()


@dataclass(frozen=True)
class AgentSettings:
    debug: bool = False
    timeout: float = DEFAULT_TIMEOUT
    follow_redirects: bool = True
    user_agent: Optional[str] = None


def load_settings() -> AgentSettings:
    """
    Read the agent defaults from the environment.

    Unset or unparsable variables keep their default value.
    """
    return AgentSettings(
        debug=get_env_bool(DEBUG_ENV, False),
        timeout=get_env_float(TIMEOUT_ENV, DEFAULT_TIMEOUT),
        follow_redirects=get_env_bool(FOLLOW_REDIRECTS_ENV, True),
        user_agent=get_env_str(USER_AGENT_ENV),
    )
