"""
MJML Email Templates
Transactional emails for the storefront, compiled to HTML before sending
"""

from typing import Optional

from .config import BASE_URL

# Storefront theme colors - warm rose/charcoal
THEME = {
    "primary": "#be185d",
    "primary_dark": "#9d174d",
    "primary_light": "#fce7f3",
    "background": "#fafaf9",
    "card_bg": "#ffffff",
    "text_primary": "#1c1917",
    "text_secondary": "#44403c",
    "text_muted": "#78716c",
    "border": "#e7e5e4",
    "success": "#16a34a",
    "warning": "#f59e0b",
    "danger": "#ef4444",
}

LOGO_URL = f"{BASE_URL}/logo.png"


def get_base_template(
    title: str,
    preview_text: str,
    content_sections: str,
    cta_url: Optional[str] = None,
    cta_label: Optional[str] = None,
) -> str:
    """Base MJML template wrapper for all emails"""

    cta_section = ""
    if cta_url and cta_label:
        cta_section = f"""
        <mj-section padding="20px 0">
          <mj-column>
            <mj-button
              href="{cta_url}"
              background-color="{THEME['primary']}"
              color="#ffffff"
              font-weight="600"
              border-radius="8px"
              padding="18px 40px"
              font-size="16px">
              {cta_label}
            </mj-button>
          </mj-column>
        </mj-section>
        """

    return f"""
    <mjml>
      <mj-head>
        <mj-title>{title}</mj-title>
        <mj-preview>{preview_text}</mj-preview>
        <mj-attributes>
          <mj-all font-family="-apple-system, BlinkMacSystemFont, 'Segoe UI', 'Helvetica Neue', Arial, sans-serif" />
          <mj-text font-size="16px" line-height="1.6" color="{THEME['text_secondary']}" />
        </mj-attributes>
      </mj-head>
      <mj-body background-color="{THEME['background']}">
        <mj-section background-color="#ffffff" padding="32px 20px">
          <mj-column>
            <mj-image src="{LOGO_URL}" alt="HairCrew" width="140px" href="{BASE_URL}" padding="0" />
          </mj-column>
        </mj-section>

        <mj-section background-color="#ffffff" padding="0 40px 48px 40px">
          <mj-column>
            <mj-divider border-color="{THEME['border']}" border-width="1px" padding="0 0 32px 0" />
            <mj-text font-size="24px" font-weight="600" color="{THEME['text_primary']}" line-height="1.3" padding="0 0 16px 0">
              {title}
            </mj-text>
            {content_sections}
          </mj-column>
        </mj-section>

        {cta_section}

        <mj-section padding="32px 20px">
          <mj-column>
            <mj-text align="center" font-size="13px" color="#a8a29e" padding="0">
              You're receiving this because you have an account with HairCrew.
            </mj-text>
          </mj-column>
        </mj-section>
      </mj-body>
    </mjml>
    """


def welcome_email_template(user_name: str) -> str:
    content = f"""
    <mj-text>
      Hi {user_name or 'there'},
    </mj-text>
    <mj-text>
      Welcome to HairCrew! Your account is ready. Save products to your wishlist,
      keep your shipping addresses handy and track every order from your account page.
    </mj-text>
    """

    return get_base_template(
        title="Welcome to HairCrew!",
        preview_text="Your account has been created successfully",
        content_sections=content,
        cta_url=f"{BASE_URL}/products",
        cta_label="Start Shopping",
    )


def password_reset_template(user_name: str, reset_link: str) -> str:
    content = f"""
    <mj-text>
      Hi {user_name or 'there'},
    </mj-text>
    <mj-text>
      We received a request to reset your password. The link below is valid for one hour.
    </mj-text>
    <mj-text color="{THEME['text_muted']}" font-size="14px">
      If you didn't request this, you can safely ignore this email.
    </mj-text>
    """

    return get_base_template(
        title="Reset Your Password",
        preview_text="Reset your HairCrew password",
        content_sections=content,
        cta_url=reset_link,
        cta_label="Reset Password",
    )


def order_confirmation_template(user_name: str, order_id: str, order_number: Optional[str] = None) -> str:
    reference = order_number or order_id
    content = f"""
    <mj-text>
      Hi {user_name or 'there'},
    </mj-text>
    <mj-text>
      Thanks for your order! We've received order <strong>{reference}</strong> and
      will let you know as soon as it ships.
    </mj-text>
    """

    return get_base_template(
        title="Order Confirmed",
        preview_text=f"Your order {reference} is confirmed",
        content_sections=content,
        cta_url=f"{BASE_URL}/account/orders/{order_id}",
        cta_label="View Order",
    )


def shipping_update_template(user_name: str, order_id: str, status: str) -> str:
    headline = "Your order has been delivered" if status == "DELIVERED" else "Your order is on its way"
    content = f"""
    <mj-text>
      Hi {user_name or 'there'},
    </mj-text>
    <mj-text>
      {headline}. Current status: <strong style="color: {THEME['primary']};">{status}</strong>.
    </mj-text>
    """

    return get_base_template(
        title=headline,
        preview_text=f"Order update: {status}",
        content_sections=content,
        cta_url=f"{BASE_URL}/account/orders/{order_id}",
        cta_label="Track Order",
    )
