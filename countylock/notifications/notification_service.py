# countylock/notifications/notification_service.py
import logging

from flask import current_app
from flask_mail import Message

from countylock.extensions import mail
from countylock.notifications.email_templates import EmailTemplates

logger = logging.getLogger(__name__)


class NotificationService:
    """
    Outgoing email.

    Every sender is best effort: delivery failures are logged and reported as
    False so callers finishing a payment or claim are never interrupted.
    """

    @staticmethod
    def send_email(to_email, subject, html, text=None):
        try:
            msg = Message(
                subject=subject,
                recipients=[to_email],
                html=html,
                body=text,
                sender=current_app.config.get("MAIL_DEFAULT_SENDER"),
            )
            mail.send(msg)
            logger.info(f"Email sent to {to_email}: {subject}")
            return True
        except Exception as e:
            logger.error(f"Failed to send email to {to_email}: {e}", exc_info=True)
            return False

    @classmethod
    def send_activation(cls, user, activation_url):
        subject, html, text = EmailTemplates.activation(user.first_name or "User", activation_url)
        return cls.send_email(user.email, subject, html, text)

    @classmethod
    def send_welcome(cls, user):
        subject, html, text = EmailTemplates.welcome(user.first_name)
        return cls.send_email(user.email, subject, html, text)

    @classmethod
    def send_auction_claim(cls, user, auction, is_free=False):
        subject, html, text = EmailTemplates.auction_claim(
            user.first_name or "User", auction.title, auction.url, is_free
        )
        return cls.send_email(user.email, subject, html, text)

    @classmethod
    def send_subscription_confirmation(cls, user, county, offer, credits):
        subject, html, text = EmailTemplates.subscription_confirmation(
            user.first_name or "Subscriber",
            county.name if county else "your county",
            offer.name or f"Tier {offer.tier_level}",
            credits,
        )
        return cls.send_email(user.email, subject, html, text)

    @classmethod
    def send_renewal_confirmation(cls, user, county, credits_added):
        subject, html, text = EmailTemplates.renewal_confirmation(
            user.first_name or "Subscriber",
            county.name if county else "your county",
            credits_added,
            user.credits,
        )
        return cls.send_email(user.email, subject, html, text)

    @classmethod
    def send_cancellation(cls, user, county, end_date):
        subject, html, text = EmailTemplates.cancellation(
            user.first_name or "Subscriber",
            county.name if county else "your county",
            end_date,
        )
        return cls.send_email(user.email, subject, html, text)

    @classmethod
    def send_payment_failed(cls, user, retry_url):
        subject, html, text = EmailTemplates.payment_failed(user.first_name or "Subscriber", retry_url)
        return cls.send_email(user.email, subject, html, text)
