import logging
from datetime import datetime, timedelta, timezone

import jwt
import pytest

from api.app.config.validate import ConfigurationError
from api.app.domain.qr_token_state import GUEST_MESSAGE, TOKEN_TYPE, QRTokenError
from api.app.security.qr_tokens import QRTokenConfig, QRTokenIssuer, QRTokenValidator

SECRET = "unit-test-secret-abcdefghijklmnop"
BASE_DOMAIN = "https://dine.example.com"


def _fixed_clock(moment: datetime):
    return lambda: moment


def test_issue_then_verify_round_trips_claims(qr_config):
    issuer = QRTokenIssuer(qr_config)
    issued = issuer.issue("table-1", "resto-9")

    result = QRTokenValidator(qr_config).verify(issued.token)

    assert result.valid
    assert result.payload.table_id == "table-1"
    assert result.payload.restaurant_id == "resto-9"
    assert result.payload.type == TOKEN_TYPE
    assert result.payload.expires_at - result.payload.issued_at == timedelta(days=365)
    assert issued.expires_at - issued.created_at == timedelta(days=365)


def test_issue_uses_default_restaurant(qr_config):
    issued = QRTokenIssuer(qr_config).issue("table-1")
    claims = jwt.decode(issued.token, SECRET, algorithms=["HS256"])
    assert claims["restaurantId"] == "default-restaurant"
    assert claims["createdAt"] == issued.created_at.isoformat()


def test_tokens_issued_back_to_back_differ(qr_config):
    issuer = QRTokenIssuer(qr_config, clock=_fixed_clock(datetime.now(timezone.utc)))
    assert issuer.issue("table-1").token != issuer.issue("table-1").token


def test_deep_link_format(qr_config):
    issuer = QRTokenIssuer(qr_config)
    assert issuer.build_deep_link("abc", "tok") == f"{BASE_DOMAIN}/menu?table=abc&token=tok"


def test_deep_link_strips_trailing_slash():
    issuer = QRTokenIssuer(QRTokenConfig(secret=SECRET, base_domain="https://x.test/"))
    assert issuer.build_deep_link("1", "t") == "https://x.test/menu?table=1&token=t"


def test_expired_token_is_reported_as_expired(qr_config):
    past = datetime.now(timezone.utc) - timedelta(days=3)
    issuer = QRTokenIssuer(qr_config, clock=_fixed_clock(past))
    token = issuer.issue("table-1", ttl=timedelta(days=1)).token

    result = QRTokenValidator(qr_config).verify(token)

    assert not result.valid
    assert result.error is QRTokenError.EXPIRED


def test_zero_ttl_token_is_expired(qr_config):
    token = QRTokenIssuer(qr_config).issue("table-1", ttl=timedelta(0)).token
    assert QRTokenValidator(qr_config).verify(token).error is QRTokenError.EXPIRED


@pytest.mark.parametrize(
    "token",
    ["", None, "not-a-token", "a.b.c"],
)
def test_garbage_is_malformed(qr_config, token):
    result = QRTokenValidator(qr_config).verify(token)
    assert not result.valid
    assert result.error is QRTokenError.MALFORMED


def test_wrong_secret_is_malformed(qr_config):
    other = QRTokenConfig(secret="another-secret-of-decent-length")
    token = QRTokenIssuer(other).issue("table-1").token
    assert QRTokenValidator(qr_config).verify(token).error is QRTokenError.MALFORMED


def test_wrong_token_type_is_malformed(qr_config):
    now = datetime.now(timezone.utc)
    token = jwt.encode(
        {
            "tableId": "table-1",
            "type": "staff_session",
            "iat": int(now.timestamp()),
            "exp": int((now + timedelta(hours=1)).timestamp()),
        },
        SECRET,
        algorithm="HS256",
    )
    assert QRTokenValidator(qr_config).verify(token).error is QRTokenError.MALFORMED


def test_token_without_expiry_is_malformed(qr_config):
    token = jwt.encode({"tableId": "table-1", "type": TOKEN_TYPE}, SECRET, algorithm="HS256")
    assert QRTokenValidator(qr_config).verify(token).error is QRTokenError.MALFORMED


def test_missing_secret_is_fatal():
    with pytest.raises(ConfigurationError):
        QRTokenIssuer(QRTokenConfig(secret=""))
    with pytest.raises(ConfigurationError):
        QRTokenValidator(QRTokenConfig(secret="   "))


def test_config_from_settings_requires_secret(monkeypatch):
    from config import get_settings

    monkeypatch.delenv("QR_TOKEN_SECRET", raising=False)
    get_settings.cache_clear()
    with pytest.raises(ConfigurationError):
        QRTokenConfig.from_settings()


def test_config_from_settings(monkeypatch):
    from config import get_settings

    monkeypatch.setenv("QR_TOKEN_SECRET", SECRET)
    monkeypatch.setenv("QR_TOKEN_TTL_DAYS", "30")
    monkeypatch.setenv("RESTAURANT_DOMAIN", "https://menu.example.org")
    get_settings.cache_clear()

    config = QRTokenConfig.from_settings()

    assert config.secret == SECRET
    assert config.ttl == timedelta(days=30)
    assert config.base_domain == "https://menu.example.org"


@pytest.mark.anyio
async def test_issue_and_render_persists_token(issuer, repo):
    table = await repo.create(table_number=3, location="Window")

    rendered = await issuer.issue_and_render(table.id)

    stored = await repo.get(table.id)
    assert stored.qr_token == rendered.token
    assert stored.qr_code == rendered.qr_code
    assert rendered.qr_code.startswith("data:image/png;base64,")
    assert rendered.url == issuer.build_deep_link(table.id, rendered.token)
    assert stored.qr_token_created_at == rendered.created_at


@pytest.mark.anyio
async def test_validate_against_table_returns_context(issuer, validator, repo):
    table = await repo.create(table_number=4, location="Bar", capacity=2)
    rendered = await issuer.issue_and_render(table.id)

    result = await validator.validate_against_table(rendered.token)

    assert result.valid
    assert result.context.id == table.id
    assert result.as_dict()["table"] == {
        "id": table.id,
        "table_number": 4,
        "status": "AVAILABLE",
        "location": "Bar",
        "capacity": 2,
    }


@pytest.mark.anyio
async def test_regenerated_token_supersedes_previous(issuer, validator, repo):
    table = await repo.create(table_number=5)
    first = await issuer.issue_and_render(table.id)
    second = await issuer.issue_and_render(table.id)

    old = await validator.validate_against_table(first.token)
    new = await validator.validate_against_table(second.token)

    assert old.error is QRTokenError.SUPERSEDED
    assert new.valid


@pytest.mark.anyio
async def test_expired_and_superseded_stay_distinct(qr_config, repo, validator):
    table = await repo.create(table_number=6)
    past = datetime.now(timezone.utc) - timedelta(days=400)
    stale_issuer = QRTokenIssuer(qr_config, repo, clock=_fixed_clock(past))
    expired = await stale_issuer.issue_and_render(table.id)

    result = await validator.validate_against_table(expired.token)

    assert result.error is QRTokenError.EXPIRED
    assert result.as_dict() == {"valid": False, "message": GUEST_MESSAGE}


@pytest.mark.anyio
async def test_unknown_table_is_not_found(qr_config, validator):
    token = QRTokenIssuer(qr_config).issue("no-such-table").token
    result = await validator.validate_against_table(token)
    assert result.error is QRTokenError.NOT_FOUND
    assert result.as_dict(expose_kind=True)["error_kind"] == "NOT_FOUND"


@pytest.mark.anyio
async def test_rejections_are_logged(issuer, validator, repo, caplog):
    table = await repo.create(table_number=8)
    first = await issuer.issue_and_render(table.id)
    await issuer.issue_and_render(table.id)

    with caplog.at_level(logging.WARNING, logger="api.qr"):
        await validator.validate_against_table(first.token)

    records = [r for r in caplog.records if r.getMessage().startswith("qr_token_rejected")]
    assert records
    assert records[-1].reason == "SUPERSEDED"
    assert records[-1].table == 8


def _rejections(caplog):
    return [r for r in caplog.records if r.getMessage().startswith("qr_token_rejected")]


@pytest.mark.anyio
async def test_expired_rejection_names_its_table(qr_config, repo, validator, caplog):
    table = await repo.create(table_number=42)
    past = datetime.now(timezone.utc) - timedelta(days=400)
    stale_issuer = QRTokenIssuer(qr_config, repo, clock=_fixed_clock(past))
    expired = await stale_issuer.issue_and_render(table.id)

    with caplog.at_level(logging.WARNING, logger="api.qr"):
        result = await validator.validate_against_table(expired.token)

    assert result.error is QRTokenError.EXPIRED
    record = _rejections(caplog)[-1]
    assert record.reason == "EXPIRED"
    assert record.table == 42
    assert record.table_id == table.id


@pytest.mark.anyio
async def test_expired_token_with_foreign_signature_names_no_table(validator, caplog):
    past = datetime.now(timezone.utc) - timedelta(days=3)
    other = QRTokenConfig(secret="another-secret-of-decent-length")
    issuer = QRTokenIssuer(other, clock=_fixed_clock(past))
    token = issuer.issue("t1", ttl=timedelta(days=1)).token

    with caplog.at_level(logging.WARNING, logger="api.qr"):
        result = await validator.validate_against_table(token)

    assert result.error is QRTokenError.MALFORMED
    assert _rejections(caplog)[-1].table_id is None


@pytest.mark.anyio
async def test_not_found_rejection_logs_table_id(qr_config, validator, caplog):
    token = QRTokenIssuer(qr_config).issue("no-such-table").token

    with caplog.at_level(logging.WARNING, logger="api.qr"):
        await validator.validate_against_table(token)

    record = _rejections(caplog)[-1]
    assert record.reason == "NOT_FOUND"
    assert record.table is None
    assert record.table_id == "no-such-table"
