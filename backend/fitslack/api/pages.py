"""
HTML pages for the interactive (browser) routes.
"""

from html import escape
from typing import Optional

from fastapi.responses import HTMLResponse

_STYLE = """
        body {
            font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
            max-width: 600px;
            margin: 50px auto;
            padding: 20px;
            line-height: 1.6;
        }
        h1 { color: #333; }
        .card {
            background: #f5f5f5;
            padding: 20px;
            border-radius: 8px;
            margin: 20px 0;
        }
        .card.strava { border-left: 4px solid #FC4C02; }
        .card.peloton { border-left: 4px solid #DF1C2F; }
        .card.verify { border-left: 4px solid #2196F3; }
        label { display: block; margin-top: 10px; font-weight: bold; }
        input {
            width: 100%;
            padding: 10px;
            font-size: 16px;
            border: 2px solid #ddd;
            border-radius: 4px;
            box-sizing: border-box;
        }
        button {
            color: white;
            padding: 12px 24px;
            font-size: 16px;
            border: none;
            border-radius: 4px;
            cursor: pointer;
            width: 100%;
            margin-top: 15px;
        }
        .btn-verify { background: #2196F3; }
        .btn-strava { background: #FC4C02; }
        .btn-peloton { background: #DF1C2F; }
        .note { font-size: 12px; color: #666; margin-top: 10px; }
        code { background: #333; color: #fff; padding: 2px 6px; border-radius: 3px; }
"""


def _page(title: str, body: str, status_code: int = 200) -> HTMLResponse:
    html = f"""
    <!DOCTYPE html>
    <html>
    <head>
        <meta charset="utf-8">
        <meta name="viewport" content="width=device-width, initial-scale=1">
        <title>{escape(title)}</title>
        <style>{_STYLE}</style>
    </head>
    <body>
{body}
    </body>
    </html>
    """
    return HTMLResponse(content=html, status_code=status_code)


def message_page(
    heading: str,
    paragraphs: list[str],
    status_code: int = 200,
    back_href: str = "/",
    back_label: str = "Back to home",
) -> HTMLResponse:
    """Heading, escaped paragraphs and a back link."""
    body = f"        <h1>{escape(heading)}</h1>\n"
    body += "".join(f"        <p>{escape(p)}</p>\n" for p in paragraphs)
    body += f'        <a href="{escape(back_href)}">&larr; {escape(back_label)}</a>'
    return _page(heading, body, status_code)


def error_page(
    message: str,
    status_code: int = 500,
    heading: str = "Something went wrong",
    back_href: str = "/",
) -> HTMLResponse:
    return message_page(heading, [message], status_code=status_code, back_href=back_href)


def home_page() -> HTMLResponse:
    """Setup page: verify Slack, then connect Strava or Peloton."""
    slack_input = (
        '<input type="text" name="slack_user_id" placeholder="U04HBADQP0B" '
        'pattern="U[A-Z0-9]{8,}" required />'
    )
    body = f"""
        <h1>&#127939; Fitness to Slack</h1>
        <p>Connect your Strava or Peloton account to automatically post your workouts to Slack.</p>
        <p>Your Slack Member ID looks like <code>U04HBADQP0B</code>
        (Slack profile &rarr; &#8943; &rarr; Copy member ID).</p>

        <div class="card verify">
            <h2>1. Verify your Slack account</h2>
            <p>We'll send you a DM with a verification link.</p>
            <form action="/verify/slack/start" method="POST">
                <label>Your Slack Member ID:</label>
                {slack_input}
                <button type="submit" class="btn-verify">Send Verification Link</button>
            </form>
        </div>

        <div class="card strava">
            <h2>2a. Connect Strava</h2>
            <form action="/auth/strava/start" method="GET">
                <label>Your Slack Member ID:</label>
                {slack_input}
                <button type="submit" class="btn-strava">Connect Strava Account</button>
            </form>
        </div>

        <div class="card peloton">
            <h2>2b. Connect Peloton</h2>
            <form action="/auth/peloton/start" method="GET">
                <label>Your Slack Member ID:</label>
                {slack_input}
                <button type="submit" class="btn-peloton">Connect Peloton Account</button>
            </form>
            <p class="note">Your Peloton password is sent directly to Peloton and never stored.</p>
        </div>
    """
    return _page("Fitness to Slack - Setup", body)


def peloton_login_page(slack_user_id: str, error: Optional[str] = None) -> HTMLResponse:
    error_html = f'<p style="color: #c00;">{escape(error)}</p>' if error else ""
    body = f"""
        <h1>&#128692; Connect Peloton</h1>
        <p>Enter your Peloton credentials to auto-post your workouts to Slack.</p>
        {error_html}
        <div class="card">
            <form action="/auth/peloton/login" method="POST">
                <input type="hidden" name="slack_user_id" value="{escape(slack_user_id)}" />
                <label for="username">Peloton Username or Email</label>
                <input type="text" id="username" name="username" required />
                <label for="password">Peloton Password</label>
                <input type="password" id="password" name="password" required />
                <button type="submit" class="btn-peloton">Connect Peloton</button>
            </form>
            <p class="note">Your password is sent directly to Peloton and is never stored by this app.</p>
        </div>
        <a href="/">&larr; Back to home</a>
    """
    return _page("Connect Peloton", body)
