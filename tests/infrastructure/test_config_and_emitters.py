"""Tests for settings, event emitters and the composition root."""

import json
import logging
from pathlib import Path

import pytest

from orderflow.domain.model.value_objects import Money
from orderflow.infrastructure import bootstrap
from orderflow.infrastructure.config import Settings
from orderflow.infrastructure.notifications.emitters import (
    FanOutEmitter,
    JsonlAuditEmitter,
    LoggingEventEmitter,
)
from orderflow.infrastructure.payment.cinetpay_gateway import CinetPayGateway
from orderflow.infrastructure.payment.unconfigured_gateway import UnconfiguredGateway
from tests.fakes import FailingEmitter, RecordingEmitter


class TestSettings:

    def test_defaults(self):
        settings = Settings.from_env({})
        assert settings.currency == "XOF"
        assert settings.weight_policy().min_grams == 100
        assert settings.checkout_policy().min_delivery_amount == Money(3000)
        assert settings.lifecycle_policy().require_payment_before_completion is True
        assert settings.gateway_timeout == 30.0

    def test_reads_environment(self, tmp_path):
        settings = Settings.from_env(
            {
                "ORDERFLOW_DATA_DIR": str(tmp_path),
                "ORDERFLOW_CURRENCY": "eur",
                "ORDERFLOW_MIN_DELIVERY_AMOUNT": "2500",
                "ORDERFLOW_REQUIRE_PAYMENT_BEFORE_COMPLETION": "no",
                "ORDERFLOW_GATEWAY_TIMEOUT": "7.5",
                "ORDERFLOW_LOG_LEVEL": "debug",
            }
        )
        assert settings.data_dir == Path(tmp_path)
        assert settings.checkout_policy().min_delivery_amount == Money(2500, "EUR")
        assert settings.require_payment_before_completion is False
        assert settings.gateway_timeout == 7.5
        assert settings.log_level == "DEBUG"

    @pytest.mark.parametrize(
        "name, value",
        [
            ("ORDERFLOW_MAX_LINE_ITEMS", "many"),
            ("ORDERFLOW_GATEWAY_TIMEOUT", "-1"),
            ("ORDERFLOW_REQUIRE_PAYMENT_BEFORE_COMPLETION", "maybe"),
            ("ORDERFLOW_CURRENCY", "BTC"),
            ("ORDERFLOW_MIN_WEIGHT_GRAMS", "60000"),
            ("ORDERFLOW_MIN_WEIGHT_GRAMS", "-1"),
            ("ORDERFLOW_REFERENCE_WEIGHT_GRAMS", "0"),
            ("ORDERFLOW_DEFAULT_ESTIMATED_WEIGHT_GRAMS", "20"),
            ("ORDERFLOW_MIN_DELIVERY_AMOUNT", "-5"),
            ("ORDERFLOW_MAX_LINE_ITEMS", "0"),
        ],
    )
    def test_invalid_values_name_the_variable(self, name, value):
        with pytest.raises(ValueError, match=name):
            Settings.from_env({name: value})


class TestBootstrap:

    def test_unconfigured_gateway_without_credentials(self, tmp_path):
        settings = Settings.from_env({"ORDERFLOW_DATA_DIR": str(tmp_path)})
        assert isinstance(bootstrap.payment_gateway(settings), UnconfiguredGateway)

    def test_cinetpay_with_credentials(self, tmp_path):
        settings = Settings.from_env(
            {
                "ORDERFLOW_DATA_DIR": str(tmp_path),
                "CINETPAY_API_KEY": "key",
                "CINETPAY_SITE_ID": "site",
            }
        )
        gateway = bootstrap.payment_gateway(settings)
        assert isinstance(gateway, CinetPayGateway)
        gateway.close()

    def test_repositories_live_in_data_dir(self, tmp_path):
        settings = Settings.from_env({"ORDERFLOW_DATA_DIR": str(tmp_path)})
        bootstrap.order_repository(settings)
        bootstrap.product_repository(settings)
        assert (tmp_path / "orders.json").exists()
        assert (tmp_path / "products.json").exists()


class TestEmitters:

    def test_logging_emitter(self, caplog):
        caplog.set_level(logging.INFO, logger="orderflow.events")
        LoggingEventEmitter().emit("StatusChanged", {"order_id": 1, "to_status": "ready"})
        assert 'StatusChanged {"order_id": 1, "to_status": "ready"}' in caplog.text

    def test_jsonl_audit_emitter_appends(self, tmp_path):
        path = tmp_path / "audit" / "events.jsonl"
        emitter = JsonlAuditEmitter(path)
        emitter.emit("OrderCreated", {"order_id": 1})
        emitter.emit("OrderCancelled", {"order_id": 1, "reason": "duplicate"})

        records = [json.loads(line) for line in path.read_text().splitlines()]
        assert [r["event"] for r in records] == ["OrderCreated", "OrderCancelled"]
        assert records[1]["payload"]["reason"] == "duplicate"

    def test_fan_out_isolates_failures(self, caplog):
        recorder = RecordingEmitter()
        FanOutEmitter([FailingEmitter(), recorder]).emit("PaymentCaptured", {"order_id": 1})
        assert recorder.names == ["PaymentCaptured"]
        assert "FailingEmitter failed to deliver PaymentCaptured" in caplog.text
