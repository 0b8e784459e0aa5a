from __future__ import annotations

import json
import logging

import pytest

from rwandabill.core.logging import JsonFormatter, get_logger, log_event, redact_fields


class _Collector(logging.Handler):
    def __init__(self) -> None:
        super().__init__()
        self.records: list[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)


def test_secret_fields_are_redacted():
    fields = redact_fields({"email": "a@x.com", "password": "Passw0rd!", "Token": "abc"})

    assert fields["email"] == "a@x.com"
    assert fields["password"] == "[redacted]"
    assert fields["Token"] == "[redacted]"


def test_log_event_emits_json_without_secrets():
    logger = get_logger("rwandabill.tests.audit")
    collector = _Collector()
    logger.addHandler(collector)
    try:
        log_event(logger, "identity.login.failure", email="a@x.com", password="Passw0rd!")
    finally:
        logger.removeHandler(collector)

    (record,) = collector.records
    line = json.loads(JsonFormatter().format(record))
    assert line["event"] == "identity.login.failure"
    assert line["email"] == "a@x.com"
    assert line["password"] == "[redacted]"
    assert "Passw0rd!" not in json.dumps(line)


def test_failed_login_is_logged_with_reason(session):
    from rwandabill.core.errors import InvalidCredentials
    from rwandabill.modules.identity.service import login

    logger = logging.getLogger("rwandabill.modules.identity.service")
    collector = _Collector()
    logger.addHandler(collector)
    try:
        with pytest.raises(InvalidCredentials):
            login(session, email="Nobody@X.com", password="Passw0rd!")
    finally:
        logger.removeHandler(collector)

    events = [r for r in collector.records if getattr(r, "event", None) == "identity.login.failure"]
    assert len(events) == 1
    assert events[0].fields["reason"] == "unknown_email"
    assert events[0].fields["email"] == "nobody@x.com"
