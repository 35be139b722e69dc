"""
Tests for configuration loading and structured JSON logging.
"""

import io
import json
import logging

import pytest

from saltdao.core.chain import LocalChain
from saltdao.core.config import ConfigurationError, DaoConfig, load_config
from saltdao.core.contracts.salt_dao import SaltDao
from saltdao.core.governance_exceptions import AuthorizationError
from saltdao.core.logging_config import get_logger, setup_logging, setup_logging_from_config
from saltdao.governance.ledger import SnapshotLedger
from saltdao.governance.models import make_proposal_id


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "PROPOSALS_MAX_COUNT",
        "VOTING_DURATION_SECONDS",
        "LOG_LEVEL",
        "LOG_FILE",
        "ENVIRONMENT",
        "CONFIG_FILE",
    ):
        monkeypatch.delenv("SALTDAO_" + name, raising=False)


class TestDaoConfig:
    """Environment and YAML configuration"""

    def test_defaults(self):
        config = DaoConfig.from_env()
        assert config.proposals_max_count == 3
        assert config.voting_duration_seconds == 259200
        assert config.log_level == "INFO"
        assert config.log_file is None

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("SALTDAO_PROPOSALS_MAX_COUNT", "5")
        monkeypatch.setenv("SALTDAO_LOG_LEVEL", "debug")

        config = DaoConfig.from_env()
        assert config.proposals_max_count == 5
        assert config.log_level == "DEBUG"

    def test_blank_environment_value_ignored(self, monkeypatch):
        monkeypatch.setenv("SALTDAO_VOTING_DURATION_SECONDS", "  ")
        assert DaoConfig.from_env().voting_duration_seconds == 259200

    @pytest.mark.parametrize(
        "values",
        [
            {"proposals_max_count": 0},
            {"proposals_max_count": "three"},
            {"voting_duration_seconds": -1},
            {"log_level": "LOUD"},
        ],
    )
    def test_invalid_values(self, values):
        with pytest.raises(ConfigurationError):
            DaoConfig.from_mapping(values)

    def test_yaml_file(self, tmp_path):
        path = tmp_path / "saltdao.yaml"
        path.write_text("proposals_max_count: 4\nenvironment: staging\n", encoding="utf-8")

        config = DaoConfig.from_yaml(path)
        assert config.proposals_max_count == 4
        assert config.environment == "staging"

    def test_environment_wins_over_yaml(self, tmp_path, monkeypatch):
        path = tmp_path / "saltdao.yaml"
        path.write_text("proposals_max_count: 4\n", encoding="utf-8")
        monkeypatch.setenv("SALTDAO_PROPOSALS_MAX_COUNT", "7")

        assert DaoConfig.from_yaml(path).proposals_max_count == 7

    def test_yaml_must_be_mapping(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("- 1\n- 2\n", encoding="utf-8")

        with pytest.raises(ConfigurationError):
            DaoConfig.from_yaml(path)

    def test_load_config_reads_config_file_variable(self, tmp_path, monkeypatch):
        path = tmp_path / "saltdao.yaml"
        path.write_text("voting_duration_seconds: 60\n", encoding="utf-8")
        monkeypatch.setenv("SALTDAO_CONFIG_FILE", str(path))

        assert load_config().voting_duration_seconds == 60

    def test_engine_from_config(self):
        config = DaoConfig.from_mapping({"proposals_max_count": 2, "voting_duration_seconds": 30})
        dao = SaltDao.from_config(LocalChain(), SnapshotLedger(), config)

        assert dao.PROPOSALS_MAX_COUNT == 2
        assert dao.voting_duration == 30

    def test_to_dict(self):
        assert DaoConfig().to_dict()["proposals_max_count"] == 3


class TestStructuredLogging:
    """JSON log output"""

    def test_json_record_fields(self):
        stream = io.StringIO()
        logger = setup_logging(name="saltdao_test_fields", environment="testing", stream=stream)

        logger.info("Proposal created", extra={"event": "dao.proposal_created", "slot": 1})

        record = json.loads(stream.getvalue().strip())
        assert record["message"] == "Proposal created"
        assert record["event"] == "dao.proposal_created"
        assert record["slot"] == 1
        assert record["environment"] == "testing"
        assert record["service"] == "saltdao_test_fields"
        assert record["level"] == "info"
        assert "timestamp" in record
        assert record["source"]["function"] == "test_json_record_fields"

    def test_level_filtering(self):
        stream = io.StringIO()
        logger = setup_logging(name="saltdao_test_level", level="WARNING", stream=stream)

        logger.info("hidden")
        logger.warning("shown")

        lines = stream.getvalue().strip().splitlines()
        assert len(lines) == 1
        assert json.loads(lines[0])["message"] == "shown"

    def test_repeated_setup_does_not_duplicate_handlers(self):
        stream = io.StringIO()
        setup_logging(name="saltdao_test_dupes", stream=stream)
        logger = setup_logging(name="saltdao_test_dupes", stream=stream)

        assert len(logger.handlers) == 1

    def test_file_handler(self, tmp_path):
        log_file = tmp_path / "logs" / "saltdao.json"
        logger = setup_logging(name="saltdao_test_file", log_file=str(log_file), enable_console=False)

        logger.info("written", extra={"event": "test.file"})
        for handler in logger.handlers:
            handler.flush()

        record = json.loads(log_file.read_text(encoding="utf-8").strip())
        assert record["event"] == "test.file"

    def test_setup_from_config(self):
        stream = io.StringIO()
        config = DaoConfig.from_mapping({"log_level": "ERROR", "environment": "production"})
        logger = setup_logging_from_config(config, name="saltdao_test_config", stream=stream)

        assert logger.level == logging.ERROR
        logger.error("boom")
        assert json.loads(stream.getvalue())["environment"] == "production"

    def test_get_logger_configures_once(self):
        first = get_logger("saltdao_test_once")
        second = get_logger("saltdao_test_once")

        assert first is second
        assert len(second.handlers) == 1

    def test_engine_logs_rejections(self):
        stream = io.StringIO()
        setup_logging(name="saltdao", level="INFO", stream=stream)
        dao = SaltDao(LocalChain(), SnapshotLedger())

        with pytest.raises(AuthorizationError):
            dao.add_new_proposal("0x" + "11" * 20, make_proposal_id("p"))

        records = [json.loads(line) for line in stream.getvalue().strip().splitlines()]
        [rejected] = [r for r in records if r.get("event") == "dao.rejected"]
        assert rejected["error"] == "AuthorizationError"
        assert rejected["operation"] == "create_proposal"
