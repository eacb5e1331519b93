import os

_ENVIRONMENTS = {
    "dev": "development",
    "development": "development",
    "test": "testing",
    "testing": "testing",
    "prod": "production",
    "production": "production",
}


def get_settings_module() -> str:
    """Settings module named by APP_ENV, development when unset."""
    env = os.getenv("APP_ENV", "development").strip().lower()
    try:
        return f"config.{_ENVIRONMENTS[env]}"
    except KeyError:
        raise ValueError(f"Unknown APP_ENV {env!r}, expected one of {sorted(set(_ENVIRONMENTS.values()))}") from None
