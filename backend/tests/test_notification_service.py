import smtplib
import unittest
from unittest.mock import patch

from app.services.email_templates import render_email
from app.services.notification_service import NotificationManager
from app.services.onboarding_exceptions import NotificationError


def enabled_manager():
    return NotificationManager(
        enabled=True,
        smtp_host="smtp.test",
        smtp_port=587,
        gmail_user="bot@example.com",
        gmail_app_password="app-password",
        from_email="team@example.com",
    )


class TestEmailTemplates(unittest.TestCase):

    def test_confirmation_is_wrapped_in_base_layout(self):
        html = render_email(
            "intake_confirmation",
            {
                "product_name": "Onboard",
                "name": "Ada",
                "repos": "alpha, and beta",
                "queue_number": "3",
                "githubHandle": "octocat",
            },
            subject="Welcome",
        )

        self.assertIn("<title>Welcome</title>", html)
        self.assertIn("Welcome to Onboard, Ada!", html)
        self.assertIn("alpha, and beta", html)
        self.assertIn("<strong>3</strong>", html)

    def test_queue_line_is_omitted_without_a_number(self):
        html = render_email("intake_confirmation", {"queue_number": ""})
        self.assertNotIn("in our queue", html)

    def test_unknown_template(self):
        with self.assertRaises(FileNotFoundError):
            render_email("does_not_exist", {})


class TestNotificationManager(unittest.TestCase):

    @patch("app.services.notification_service.smtplib.SMTP")
    def test_disabled_manager_sends_nothing(self, mock_smtp):
        manager = NotificationManager(enabled=False)

        self.assertFalse(manager.send_plain("ops@example.com", "subject", "body"))
        mock_smtp.assert_not_called()

    @patch("app.services.notification_service.smtplib.SMTP")
    def test_plain_message_is_sent_over_starttls(self, mock_smtp):
        server = mock_smtp.return_value.__enter__.return_value

        sent = enabled_manager().send_plain("ops@example.com, lead@example.com", "Hi", "Body")

        self.assertTrue(sent)
        server.starttls.assert_called_once()
        server.login.assert_called_once_with("bot@example.com", "app-password")
        from_email, recipients, _ = server.sendmail.call_args.args
        self.assertEqual(from_email, "team@example.com")
        self.assertEqual(recipients, ["ops@example.com", "lead@example.com"])

    @patch("app.services.notification_service.smtplib.SMTP")
    def test_templated_message_is_html(self, mock_smtp):
        server = mock_smtp.return_value.__enter__.return_value

        enabled_manager().send_templated(
            "ada@example.com", "intake_confirmation", {"name": "Ada"}, subject="Welcome"
        )

        message = server.sendmail.call_args.args[2]
        self.assertIn("text/html", message)

    @patch("app.services.notification_service.smtplib.SMTP")
    def test_transport_failure_raises_notification_error(self, mock_smtp):
        server = mock_smtp.return_value.__enter__.return_value
        server.sendmail.side_effect = smtplib.SMTPServerDisconnected("gone")

        with self.assertRaises(NotificationError):
            enabled_manager().send_plain("ops@example.com", "Hi", "Body")

    @patch("app.services.notification_service.smtplib.SMTP")
    def test_auth_failure_raises_notification_error(self, mock_smtp):
        server = mock_smtp.return_value.__enter__.return_value
        server.login.side_effect = smtplib.SMTPAuthenticationError(535, b"bad credentials")

        with self.assertRaises(NotificationError):
            enabled_manager().send_plain("ops@example.com", "Hi", "Body")

        server.sendmail.assert_not_called()


if __name__ == "__main__":
    unittest.main()
