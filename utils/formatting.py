"""
Rich-text (Telegram HTML) formatting for scanner alerts and stats
"""

import html
from datetime import datetime, timezone
from typing import Dict, Optional


def format_pct(value: Optional[float], digits: int = 3) -> str:
    return f"{value:.{digits}f}%" if value is not None else 'unknown'


def format_alert_html(payload) -> str:
    """Render an alert payload as a Telegram HTML message"""
    name = html.escape(payload.name) if payload.name else 'n/a'
    return (
        "<b>🔥 SAFE TOKEN (dev sold)</b>\n"
        f"Name: {name}\n"
        f"Mint: <code>{payload.mint}</code>\n"
        f"Top10%: {format_pct(payload.top10_pct)}\n"
        f"Holders: {payload.holders}\n"
        f"Risk: {payload.risk}%\n"
        f"Narrative: {payload.narrative}\n"
        f"Vol spike: {'YES' if payload.volume_spike else 'NO'}\n"
        "\n"
        f"Buy: {html.escape(payload.buy_link)}\n"
        f"Copy: {payload.mint}"
    )


def format_test_alert(now: datetime = None) -> str:
    now = now or datetime.now(timezone.utc)
    return f"<b>TEST ALERT</b>\nTime: {now.isoformat()}"


def format_startup_notice() -> str:
    return "<b>Sniper worker started - strict dev-sold mode</b>"


def format_stats_text(stats: Dict, recent: int = 5) -> str:
    lines = [
        "<b>📊 Scanner stats</b>",
        f"Scanner: {'ON' if stats.get('scannerOn') else 'OFF'}",
        f"Scanned: {stats.get('scanned', 0)}",
        f"Wins / Losses: {stats.get('wins', 0)} / {stats.get('losses', 0)}",
    ]
    if stats.get('lastError'):
        lines.append(f"Last error: {html.escape(str(stats['lastError']))}")
    entries = stats.get('alerts') or []
    if entries:
        lines.append("")
        lines.append("<b>Recent</b>")
        lines.extend(html.escape(entry) for entry in entries[:recent])
    return "\n".join(lines)
