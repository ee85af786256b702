"""Environment variable substitution for configuration files.

Supports ${VAR_NAME} and ${VAR_NAME:-default} references in raw file text.
References to the scheduler's runtime variables (${NOMAD_...}) are left for
the scheduler to interpolate, and $${...} escapes a literal ${...}.
"""

import os
import re

from dcdeploy.config.defaults import RUNTIME_ENV_PREFIX
from dcdeploy.lib.errors import ConfigError

ENV_VAR_PATTERN = re.compile(r"(\$?)\$\{([A-Za-z_][A-Za-z0-9_]*)(?::-([^}]*))?\}")


def get_env_var(name: str, default: str | None = None) -> str | None:
    """Return an environment variable value or the default."""
    return os.environ.get(name, default)


def substitute_env_vars(text: str) -> str:
    """Replace ${VAR} and ${VAR:-default} references with their values.

    Args:
        text: Raw configuration text

    Returns:
        Text with every deploy-time reference substituted

    Raises:
        ConfigError: If a referenced variable is unset and has no default
    """

    def _replace(match: re.Match[str]) -> str:
        escaped, name, default = match.group(1), match.group(2), match.group(3)
        if escaped:
            return match.group(0)[1:]
        if name.startswith(RUNTIME_ENV_PREFIX):
            return match.group(0)

        value = get_env_var(name, default)
        if value is None:
            raise ConfigError(
                field=name,
                message=f"Environment variable '{name}' is not set",
            )
        return value

    return ENV_VAR_PATTERN.sub(_replace, text)
