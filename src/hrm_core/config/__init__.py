import os


def get_settings_module() -> str:
    # APP_ENV selects the settings module, default 'development'
    env = os.getenv("APP_ENV", "development").lower()

    if env in {"prod", "production"}:
        return "hrm_core.config.production"

    if env in {"test", "testing"}:
        return "hrm_core.config.testing"

    return "hrm_core.config.development"
