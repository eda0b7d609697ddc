"""Tests for channel service and commands."""

import pytest
from finledger.cli.main import cli
from finledger.domain.entities import CashFlowActivity, ChannelType, ReportingRole
from finledger.domain.channel_roles import classify_channel
from finledger.domain.errors import ConfigurationError, ConflictError, NotFoundError, ValidationError


def test_create_channel(channel_service):
    """Test creating a channel through the service."""
    channel_id = channel_service.create_channel("현대카드", channel_type="card", bank="현대카드")

    channel = channel_service.get_channel(channel_id)
    assert channel.name == "현대카드"
    assert channel.channel_type == ChannelType.CARD
    assert channel.bank == "현대카드"


def test_create_channel_strips_name(channel_service):
    channel_id = channel_service.create_channel("  통장  ")
    assert channel_service.get_channel(channel_id).name == "통장"


def test_create_channel_blank_name(channel_service):
    with pytest.raises(ValidationError):
        channel_service.create_channel("   ")


def test_create_channel_unknown_type(channel_service):
    with pytest.raises(ValidationError, match="channel type"):
        channel_service.create_channel("통장", channel_type="piggybank")


def test_create_channel_duplicate(channel_service):
    channel_service.create_channel("통장")
    with pytest.raises(ConflictError, match="already exists"):
        channel_service.create_channel("통장")


def test_create_channel_normalizes_overrides(channel_service):
    channel_id = channel_service.create_channel(
        "대출 계좌", metadata={"reportingRole": "Liability", "cash_flow_activity": "FINANCING"}
    )
    channel = channel_service.get_channel(channel_id)
    assert channel.metadata == {"reportingRole": "liability", "cash_flow_activity": "financing"}


def test_create_channel_rejects_bad_override(channel_service):
    with pytest.raises(ConfigurationError):
        channel_service.create_channel("통장", metadata={"reporting_role": "treasure"})


def test_get_or_create_channel(channel_service):
    first_id, created = channel_service.get_or_create_channel("통장")
    assert created
    second_id, created = channel_service.get_or_create_channel("통장")
    assert not created
    assert first_id == second_id


def test_resolve_channel_by_name_then_id(channel_service, sample_channels):
    card_id = sample_channels["card"]
    assert channel_service.resolve_channel("현대카드").id == card_id
    assert channel_service.resolve_channel(str(card_id)).id == card_id


def test_resolve_channel_prefers_name_over_id(channel_service, sample_channels):
    """A channel literally named "1" wins over the channel with ID 1."""
    named_id = channel_service.create_channel("1")
    assert channel_service.resolve_channel("1").id == named_id


def test_resolve_channel_missing(channel_service):
    with pytest.raises(NotFoundError):
        channel_service.resolve_channel("없는 통장")
    with pytest.raises(NotFoundError):
        channel_service.resolve_channel("42")


def test_set_classification(channel_service, sample_channels):
    savings_id = sample_channels["savings"]

    updated = channel_service.set_classification(savings_id, activity="investing")
    classification = classify_channel(updated)
    assert classification.role == ReportingRole.ASSET
    assert classification.activity == CashFlowActivity.INVESTING

    updated = channel_service.set_classification(savings_id, role="liability")
    assert classify_channel(updated).role == ReportingRole.LIABILITY
    assert classify_channel(updated).activity == CashFlowActivity.INVESTING

    cleared = channel_service.set_classification(savings_id, clear=True)
    assert cleared.metadata == {}
    assert classify_channel(cleared).role == ReportingRole.ASSET


def test_set_classification_replaces_camel_case_key(channel_service):
    channel_id = channel_service.create_channel("지갑", metadata={"reportingRole": "off_balance"})
    updated = channel_service.set_classification(channel_id, role="asset")
    assert updated.metadata == {"reporting_role": "asset"}


def test_set_classification_rejects_unknown_role(channel_service, sample_channels):
    with pytest.raises(ConfigurationError):
        channel_service.set_classification(sample_channels["checking"], role="treasure")


def test_set_classification_missing_channel(channel_service):
    with pytest.raises(NotFoundError):
        channel_service.set_classification(999, role="asset")


def test_channel_create_command(cli_runner, temp_db):
    """Test creating a channel from the command line."""
    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "channel", "create", "현대카드", "--type", "card"]
    )

    assert result.exit_code == 0
    assert "Created channel '현대카드'" in result.output
    assert "Reporting role: liability" in result.output


def test_channel_create_duplicate_command(cli_runner, temp_db, sample_channels):
    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "channel", "create", "현대카드"]
    )

    assert result.exit_code == 1
    assert "already exists" in result.output


def test_channel_list_empty(cli_runner, temp_db):
    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "channel", "list"])

    assert result.exit_code == 0
    assert "No channels found" in result.output


def test_channel_list_shows_roles(cli_runner, temp_db, sample_channels):
    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "channel", "list"])

    assert result.exit_code == 0
    assert "토스뱅크 통장" in result.output
    assert "liability" in result.output
    assert "operating" in result.output


def test_channel_set_role_command(cli_runner, temp_db, sample_channels):
    result = cli_runner.invoke(
        cli,
        ["--db-path", temp_db.database_path, "channel", "set-role", "카카오뱅크 저축", "--activity", "investing"],
    )

    assert result.exit_code == 0
    assert "role asset, activity investing" in result.output


def test_channel_set_role_requires_option(cli_runner, temp_db, sample_channels):
    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "channel", "set-role", "현대카드"]
    )

    assert result.exit_code == 1
    assert "Specify --role, --activity or --clear" in result.output


def test_channel_set_role_unknown_channel(cli_runner, temp_db):
    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "channel", "set-role", "없음", "--role", "asset"]
    )

    assert result.exit_code == 1
    assert "not found" in result.output
