import pytest

from waitlist.services.notifier import ACTIVATION_SUBJECT, LogNotifier, SMTPNotifier, mask_contact


def test_mask_contact() -> None:
    assert mask_contact("alice@example.com") == "a***@example.com"
    assert mask_contact("no-at-sign") == "***"


@pytest.mark.asyncio
async def test_log_notifier_never_logs_full_contact(caplog) -> None:
    caplog.set_level("INFO", logger="waitlist.services.notifier")
    notifier = LogNotifier()

    await notifier.send_activation_link("alice@example.com", "http://x/activate/t/F", "F" * 128)
    await notifier.send_confirmation("alice@example.com")

    records = [r for r in caplog.records if r.name == "waitlist.services.notifier"]
    assert len(records) == 2
    assert all("alice@example.com" not in record.getMessage() for record in records)


@pytest.mark.asyncio
async def test_smtp_notifier_sends_activation_link(mocker) -> None:
    smtp_cls = mocker.patch("waitlist.services.notifier.smtplib.SMTP")
    smtp = smtp_cls.return_value.__enter__.return_value
    notifier = SMTPNotifier("mail.example.com", 587, "gate@example.com", username="u", password="p")

    await notifier.send_activation_link("alice@example.com", "http://x/activate/t/F", "F" * 128)

    smtp_cls.assert_called_once_with("mail.example.com", 587, timeout=10.0)
    smtp.starttls.assert_called_once()
    smtp.login.assert_called_once_with("u", "p")
    message = smtp.send_message.call_args.args[0]
    assert message["To"] == "alice@example.com"
    assert message["Subject"] == ACTIVATION_SUBJECT
    assert "http://x/activate/t/F" in message.get_content()


@pytest.mark.asyncio
async def test_smtp_notifier_skips_login_without_credentials(mocker) -> None:
    smtp_cls = mocker.patch("waitlist.services.notifier.smtplib.SMTP")
    smtp = smtp_cls.return_value.__enter__.return_value

    await SMTPNotifier("mail.example.com", 25, "gate@example.com").send_confirmation("bob@example.com")

    smtp.login.assert_not_called()
    smtp.send_message.assert_called_once()
