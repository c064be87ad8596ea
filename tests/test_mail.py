import smtplib

import pytest

from formapi import mail

pytestmark = pytest.mark.anyio


class FakeSMTP:
    sent = []

    def __init__(self, host, port):
        self.host = host
        self.port = port

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        pass

    def login(self, user, password):
        pass

    def sendmail(self, sender, recipients, message):
        FakeSMTP.sent.append((sender, recipients, message))


async def test_send_mail_delivers(monkeypatch):
    FakeSMTP.sent = []
    monkeypatch.setattr(mail.smtplib, "SMTP", FakeSMTP)

    sent = await mail.send_mail("a@example.com", "Your OTP Code", "Your OTP Code is 1234")

    assert sent is True
    assert len(FakeSMTP.sent) == 1
    _, recipients, message = FakeSMTP.sent[0]
    assert recipients == ["a@example.com"]
    assert "Subject: Your OTP Code" in message
    assert "Your OTP Code is 1234" in message


async def test_send_mail_swallows_failures(monkeypatch):
    def refuse(host, port):
        raise smtplib.SMTPConnectError(421, "relay unavailable")

    monkeypatch.setattr(mail.smtplib, "SMTP", refuse)

    assert await mail.send_mail("a@example.com", "Subject", "Body") is False
