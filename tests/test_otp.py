import re
from types import SimpleNamespace

import pytest
from twilio.base.exceptions import TwilioRestException

from armoire.domain.errors import RateLimited, ValidationError
from armoire.services.otp_service import format_phone_number, validate_phone_number
from armoire.services.sms_client import SmsClient


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("9812345678", "+919812345678"),
        ("98123 45678", "+919812345678"),
        ("+91 98123-45678", "+919812345678"),
        ("919812345678", "+919812345678"),
        ("+1 415 555 0100", "+14155550100"),
    ],
)
def test_format_phone_number(raw, expected):
    assert format_phone_number(raw) == expected


def test_only_indian_mobiles_are_valid():
    assert validate_phone_number("+919812345678")
    assert not validate_phone_number("+915812345678")
    assert not validate_phone_number("+14155550100")
    assert not validate_phone_number("+91981234567")


def _code(sms):
    _, body = sms.messages[-1]
    return re.search(r"\b(\d{6})\b", body).group(1)


def test_send_otp_texts_a_six_digit_code(client, sms):
    resp = client.post("/auth/send-otp", json={"phone": "98123 45678"})

    assert resp.status_code == 200
    assert resp.json() == {"success": True, "message": "OTP sent successfully"}
    to, body = sms.messages[0]
    assert to == "+919812345678"
    assert "Nala Armoire" in body
    assert len(_code(sms)) == 6


@pytest.mark.parametrize("body", [{}, {"phone": "12345"}])
def test_send_otp_rejects_malformed_request(client, sms, body):
    resp = client.post("/auth/send-otp", json=body)

    assert resp.status_code == 400
    data = resp.json()
    assert data["success"] is False
    assert data["message"] == "Invalid phone number"
    assert "phone" in data["errors"]
    assert sms.messages == []


def test_send_otp_rejects_non_indian_number(client, sms):
    resp = client.post("/auth/send-otp", json={"phone": "+1 415 555 0100"})

    assert resp.status_code == 400
    assert resp.json() == {"success": False, "message": "Invalid phone number"}
    assert sms.messages == []


def test_second_send_within_a_minute_is_rate_limited(client, sms):
    client.post("/auth/send-otp", json={"phone": "9812345678"})

    resp = client.post("/auth/send-otp", json={"phone": "9812345678"})

    assert resp.status_code == 429
    assert resp.json()["success"] is False
    assert len(sms.messages) == 1


def test_sms_failure_is_500_and_leaves_no_code(client, sms, otp_service):
    sms.should_succeed = False

    resp = client.post("/auth/send-otp", json={"phone": "9812345678"})

    assert resp.status_code == 500
    assert resp.json() == {"success": False, "message": "Failed to send OTP"}
    assert otp_service.store.get_otp("+919812345678") is None


def test_retry_after_sms_failure_is_not_rate_limited(client, sms, otp_service):
    sms.should_succeed = False
    failed = client.post("/auth/send-otp", json={"phone": "9812345678"})

    sms.should_succeed = True
    retry = client.post("/auth/send-otp", json={"phone": "9812345678"})

    assert failed.status_code == 500
    assert retry.status_code == 200
    assert otp_service.store.get_otp("+919812345678") == _code(sms)


def test_send_slot_is_taken_once(otp_service):
    store = otp_service.store

    assert store.acquire_send_slot("+919812345678")
    assert not store.acquire_send_slot("+919812345678")

    store.release_send_slot("+919812345678")
    assert store.acquire_send_slot("+919812345678")


def test_verify_otp_accepts_code_once(client, sms):
    client.post("/auth/send-otp", json={"phone": "9812345678"})
    code = _code(sms)

    ok = client.post("/auth/verify-otp", json={"phone": "9812345678", "otp": code})
    again = client.post("/auth/verify-otp", json={"phone": "9812345678", "otp": code})

    assert ok.status_code == 200
    assert ok.json()["success"] is True
    assert again.status_code == 400
    assert again.json()["message"] == "OTP expired or not found"


def test_verify_otp_with_wrong_code(client, sms):
    client.post("/auth/send-otp", json={"phone": "9812345678"})
    wrong = "000000" if _code(sms) != "000000" else "111111"

    resp = client.post("/auth/verify-otp", json={"phone": "9812345678", "otp": wrong})

    assert resp.status_code == 400
    assert resp.json()["message"] == "Invalid OTP"


def test_verify_otp_validates_request_shape(client):
    resp = client.post("/auth/verify-otp", json={"phone": "9812345678", "otp": "12ab"})

    assert resp.status_code == 400
    assert "otp" in resp.json()["errors"]


def test_too_many_attempts_lock_the_code(otp_service, sms):
    otp_service.send_otp("9812345678")
    code = _code(sms)
    wrong = "000000" if code != "000000" else "111111"

    for _ in range(5):
        with pytest.raises(ValidationError):
            otp_service.verify_otp("9812345678", wrong)

    with pytest.raises(RateLimited):
        otp_service.verify_otp("9812345678", code)


def test_new_code_resets_attempts(otp_service, sms):
    otp_service.send_otp("9812345678")
    for _ in range(3):
        with pytest.raises(ValidationError):
            otp_service.verify_otp("9812345678", "000000" if _code(sms) != "000000" else "111111")

    otp_service.store.redis.delete("otp:ratelimit:+919812345678")
    otp_service.send_otp("9812345678")

    assert otp_service.verify_otp("9812345678", _code(sms)) == "+919812345678"


class FakeTwilio:
    """Stands in for ``twilio.rest.Client``: only ``messages.create``."""

    def __init__(self, error=None):
        self.created = []
        self.error = error
        self.messages = SimpleNamespace(create=self._create)

    def _create(self, to, from_, body):
        self.created.append({"to": to, "from_": from_, "body": body})
        if self.error:
            raise self.error
        return SimpleNamespace(sid="SM123")


def test_sms_client_sends_through_twilio():
    twilio = FakeTwilio()
    client = SmsClient("AC1", "token", "+15550000000", client=twilio)

    assert client.send("+919812345678", "hello")
    assert twilio.created == [{"to": "+919812345678", "from_": "+15550000000", "body": "hello"}]


def test_sms_client_reports_failure():
    error = TwilioRestException(401, "/Accounts/AC1/Messages.json", msg="Authenticate")
    twilio = FakeTwilio(error=error)

    assert not SmsClient("AC1", "token", "+15550000000", client=twilio).send("+919812345678", "hello")
    assert not SmsClient("", "", "", client=FakeTwilio()).send("+919812345678", "hello")
