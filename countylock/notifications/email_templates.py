# countylock/notifications/email_templates.py
from datetime import datetime

from markupsafe import escape


def _layout(title, header_color, body_html):
    return f"""
        <!DOCTYPE html>
        <html>
        <head>
            <meta charset="utf-8">
            <style>
                body {{ font-family: Arial, sans-serif; line-height: 1.6; background: #f9fafb; }}
                .container {{ max-width: 600px; margin: 20px auto; background: white; border-radius: 8px; }}
                .header {{ background: {header_color}; color: white; padding: 20px; text-align: center; border-radius: 8px 8px 0 0; }}
                .content {{ padding: 30px; }}
                .button {{ display: inline-block; background: #2563eb; color: white; padding: 12px 24px; text-decoration: none; border-radius: 6px; font-weight: bold; }}
                .footer {{ margin-top: 30px; padding-top: 20px; border-top: 1px solid #dee2e6; color: #6b7280; font-size: 12px; text-align: center; }}
            </style>
        </head>
        <body>
            <div class="container">
                <div class="header">
                    <h1>{title}</h1>
                </div>
                <div class="content">
                    {body_html}
                </div>
                <div class="footer">
                    <p>&copy; {datetime.now().year} BidSquire Inc. All rights reserved.</p>
                    <p>This is an automated message, please do not reply to this email.</p>
                </div>
            </div>
        </body>
        </html>
        """


def _button(url, label):
    return f"""
                    <p style="text-align: center; margin: 30px 0;">
                        <a href="{escape(url)}" class="button" style="color: white;">{label}</a>
                    </p>"""


class EmailTemplates:
    """Email template definitions. Each returns (subject, html, text)."""

    @staticmethod
    def activation(user_name, activation_url):
        name = escape(user_name or "there")
        subject = "Activate Your BidSquire Account"
        html = _layout("Welcome to BidSquire!", "#2563eb", f"""
                    <p>Hi {name},</p>
                    <p>Your account has been created successfully. To complete your setup and access
                    your claimed auctions, use the link below to set your password:</p>
                    {_button(activation_url, "Activate Account &amp; Set Password")}
                    <p>This link is valid for 24 hours.</p>""")
        text = (
            f"Welcome to BidSquire, {user_name or 'there'}!\n\n"
            f"Your account has been created. To complete configuration:\n{activation_url}\n\n"
            "This link expires in 24 hours.\n"
        )
        return subject, html, text

    @staticmethod
    def welcome(user_name):
        subject = "Welcome to BidSquire"
        html = _layout("Welcome!", "#2563eb", f"""
                    <p>Hi {escape(user_name or 'there')},</p>
                    <p>Thanks for joining. Browse your state's counties to lock in your territory.</p>""")
        text = f"Hi {user_name or 'there'},\n\nThanks for joining BidSquire.\n"
        return subject, html, text

    @staticmethod
    def auction_claim(user_name, auction_title, auction_url, is_free=False):
        title = auction_title or "your auction"
        prefix = "Free Trial Claim Confirmed" if is_free else "Auction Claim Confirmed"
        subject = f"{prefix}: {title}"
        detail = (
            "Your free trial claim is active. Your bonus credits are waiting in your account."
            if is_free else
            "Your payment was received and this auction is now exclusively yours."
        )
        html = _layout(prefix, "#22c55e", f"""
                    <p>Hi {escape(user_name or 'there')},</p>
                    <p>{detail}</p>
                    <div style="background: #f8f9fa; padding: 20px; border-radius: 4px; margin: 20px 0;">
                        <p><strong>Auction:</strong> {escape(title)}</p>
                        <p><strong>Link:</strong> <a href="{escape(auction_url)}">{escape(auction_url)}</a></p>
                    </div>""")
        text = f"Hi {user_name or 'there'},\n\n{detail}\n\nAuction: {title}\nLink: {auction_url}\n"
        return subject, html, text

    @staticmethod
    def subscription_confirmation(user_name, county_name, tier_name, credits):
        subject = f"Subscription Confirmed: {county_name} - BidSquire"
        html = _layout("Subscription Confirmed!", "#22c55e", f"""
                    <p>Hi {escape(user_name or 'Subscriber')},</p>
                    <p>Your <strong>{escape(tier_name)}</strong> subscription for
                    <strong>{escape(county_name)}</strong> is now active.</p>
                    <p><strong>{credits}</strong> credits have been added to your account.</p>""")
        text = (
            f"Hi {user_name or 'Subscriber'},\n\n"
            f"Your {tier_name} subscription for {county_name} is now active.\n"
            f"{credits} credits have been added to your account.\n"
        )
        return subject, html, text

    @staticmethod
    def renewal_confirmation(user_name, county_name, credits_added, current_balance):
        subject = f"Subscription Renewed: {county_name} - BidSquire"
        html = _layout("Subscription Renewed", "#22c55e", f"""
                    <p>Hi {escape(user_name or 'Subscriber')},</p>
                    <p>Your subscription for <strong>{escape(county_name)}</strong> has renewed.</p>
                    <p><strong>{credits_added}</strong> credits were added.
                    Your balance is now <strong>{current_balance}</strong>.</p>""")
        text = (
            f"Hi {user_name or 'Subscriber'},\n\n"
            f"Your subscription for {county_name} has renewed.\n"
            f"{credits_added} credits were added. Current balance: {current_balance}.\n"
        )
        return subject, html, text

    @staticmethod
    def cancellation(user_name, county_name, end_date):
        formatted = (end_date or datetime.now()).strftime("%B %d, %Y")
        subject = f"Subscription Cancelled: {county_name} - BidSquire"
        html = _layout("Subscription Cancelled", "#6b7280", f"""
                    <p>Hi {escape(user_name or 'Subscriber')},</p>
                    <p>Your subscription for <strong>{escape(county_name)}</strong> has been cancelled.</p>
                    <p>Access ends on <strong>{formatted}</strong>.</p>""")
        text = (
            f"Hi {user_name or 'Subscriber'},\n\n"
            f"Your subscription for {county_name} has been cancelled. Access ends on {formatted}.\n"
        )
        return subject, html, text

    @staticmethod
    def payment_failed(user_name, retry_url):
        subject = "Payment Failed - Action Required"
        html = _layout("Payment Failed", "#dc3545", f"""
                    <p>Hello {escape(user_name or 'Subscriber')},</p>
                    <p>We were unable to process your recent payment for your subscription.</p>
                    {_button(retry_url, "Update Payment Method")}
                    <p>If you believe this is an error, please contact our support team.</p>""")
        text = (
            f"Hello {user_name or 'Subscriber'},\n\n"
            f"We were unable to process your recent payment. Update your payment method:\n{retry_url}\n"
        )
        return subject, html, text
