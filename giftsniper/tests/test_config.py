import pytest
from pydantic import ValidationError

from giftsniper.shared.config import AppConfig

REQUIRED = {
    "API_ID": "12345",
    "API_HASH": "0123456789abcdef0123456789abcdef",
    "PHONE_NUMBERS": "+10000000001, +10000000002",
    "BOT_TOKEN": "123456:token",
    "MAX_SUPPLY": "5000",
}


@pytest.fixture
def env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for key, value in REQUIRED.items():
        monkeypatch.setenv(key, value)
    return monkeypatch


def test_defaults(env: pytest.MonkeyPatch) -> None:
    config = AppConfig(_env_file=None)  # type: ignore[call-arg]

    assert config.phone_numbers == ["+10000000001", "+10000000002"]
    assert config.admin_usernames == []
    assert config.per_item_attempt_limit == 100
    assert config.poll_interval == 2.0
    assert config.purchase_enabled is False
    assert config.include_non_bounded_items is False
    assert config.gift_to_destination is False
    assert config.database_url == "sqlite:///giftsniper.db"
    assert config.destination().is_self


def test_operator_options(env: pytest.MonkeyPatch) -> None:
    env.setenv("ADMIN_USERNAMES", "@alice,bob")
    env.setenv("PURCHASE_ENABLED", "yes")
    env.setenv("INCLUDE_NON_BOUNDED_ITEMS", "1")
    env.setenv("PER_ITEM_ATTEMPT_LIMIT", "7")
    env.setenv("DEST_CHANNEL_USERNAME", "@drops")
    env.setenv("INITIAL_GIFTS_HASH", "99")

    config = AppConfig(_env_file=None)  # type: ignore[call-arg]

    assert config.admin_usernames == ["alice", "bob"]
    assert config.purchase_enabled is True
    assert config.include_non_bounded_items is True
    assert config.per_item_attempt_limit == 7
    assert config.initial_gifts_hash == 99
    assert config.destination().username == "drops"


def test_phone_numbers_required(env: pytest.MonkeyPatch) -> None:
    env.setenv("PHONE_NUMBERS", " , ")

    with pytest.raises(ValidationError):
        AppConfig(_env_file=None)  # type: ignore[call-arg]


def test_max_supply_required(env: pytest.MonkeyPatch) -> None:
    env.delenv("MAX_SUPPLY")

    with pytest.raises(ValidationError):
        AppConfig(_env_file=None)  # type: ignore[call-arg]
