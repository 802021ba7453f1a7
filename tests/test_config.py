"""Tests for configuration helpers."""

import pytest
from pydantic import ValidationError

from contact_cache.config import InvalidTtlError, Settings, validate_ttl_settings


def test_settings_defaults(settings: Settings) -> None:
    assert settings.cache_max_entries == 1000
    assert settings.cache_warming_guard_seconds == 30
    assert [rule.name for rule in settings.ttl_rules()] == ["department", "enterprise"]


def test_settings_read_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ADMIN_TOKEN", "env-token")
    monkeypatch.setenv("CONTACTS_API_BASE_URL", "https://contacts.env")
    monkeypatch.setenv("CACHE_DEPARTMENT_TTL_SECONDS", "90")

    settings = Settings()

    assert settings.admin_token == "env-token"
    assert settings.ttl_rules()[0].ttl_seconds == 90


def test_validate_ttl_settings_accepts_positive_numbers() -> None:
    validated = validate_ttl_settings(
        {"enterprise": 10, "default": 2.5}, {"enterprise", "default"}
    )

    assert validated == {"enterprise": 10.0, "default": 2.5}


@pytest.mark.parametrize("value", [0, -1, "10", None, True])
def test_validate_ttl_settings_rejects_bad_values(value: object) -> None:
    with pytest.raises(InvalidTtlError):
        validate_ttl_settings({"enterprise": value}, {"enterprise"})


@pytest.mark.parametrize(
    "override",
    [
        {"cache_department_ttl_seconds": -5},
        {"cache_default_ttl_seconds": 0},
        {"cache_max_entries": 0},
        {"cache_warming_guard_seconds": -1},
        {"cache_wait_poll_interval_seconds": 0},
    ],
)
def test_settings_reject_non_positive_cache_values(
    override: dict[str, object],
) -> None:
    with pytest.raises(ValidationError):
        Settings(
            admin_token="admin-token",
            contacts_api_base_url="https://contacts.test",
            **override,
        )
